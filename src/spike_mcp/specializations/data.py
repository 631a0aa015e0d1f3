"""Data-layer specializations: Prisma, GraphQL, Apollo."""

from spike_mcp.specializations.common import GenContext, Scaffold

_PRISMA_SCHEMA = (
    "datasource db {\n"
    '  provider = "postgresql"\n'
    '  url      = env("DATABASE_URL")\n'
    "}\n\n"
    "generator client {\n"
    '  provider = "prisma-client-js"\n'
    "}\n\n"
    "model {{model}} {\n"
    "  id        Int      @id @default(autoincrement())\n"
    "  email     String   @unique\n"
    "  name      String?\n"
    "  createdAt DateTime @default(now())\n"
    "}\n"
)


def prisma(ctx: GenContext, out: Scaffold) -> None:
    out.param("model", "User", "Prisma model name")
    if ctx.lang == "py":
        out.depends(pip=("prisma",))
        out.file("prisma/schema.prisma", _PRISMA_SCHEMA.replace("prisma-client-js", "prisma-client-py"))
        if ctx.pattern in ("crud", "service", "client"):
            out.file(
                "app/db.py",
                "from prisma import Prisma\n\n"
                "db = Prisma()\n\n\n"
                "async def create(email: str):\n"
                "    await db.connect()\n"
                "    try:\n"
                "        return await db.{{model}}.create(data={\"email\": email})\n"
                "    finally:\n"
                "        await db.disconnect()\n",
            )
        return
    if not ctx.is_node:
        return

    out.depends(npm=("@prisma/client", "prisma"))
    ext = ctx.ext
    ts = ctx.lang == "ts"

    if ctx.pattern in ("schema", "crud", "service", "init", "config"):
        out.file("prisma/schema.prisma", _PRISMA_SCHEMA)
    if ctx.pattern in ("crud", "service", "client", "init"):
        out.file(
            f"src/prisma.{ext}",
            "import { PrismaClient } from '@prisma/client';\n\n"
            "export const prisma = new PrismaClient();\n",
        )
    if ctx.pattern == "schema" and ctx.style == "typed":
        out.file(
            f"src/{{{{model}}}}.types.{ext}",
            "import type { Prisma } from '@prisma/client';\n\n"
            "export type Create{{model}}Input = Prisma.{{model}}CreateInput;\n"
            if ts
            else "module.exports = {};\n",
        )
    if ctx.pattern == "service":
        out.file(
            f"src/user.service.{ext}",
            "import { prisma } from './prisma';\n\n"
            f"export async function createUserWithTx(email{': string' if ts else ''}) {{\n"
            "  return prisma.$transaction(async (tx) => {\n"
            "    return tx.user.create({ data: { email } });\n"
            "  });\n"
            "}\n",
        )
        if ctx.style == "advanced":
            out.file(
                f"src/prisma.pagination.{ext}",
                f"export function paginate(page{': number' if ts else ''} = 1, size{': number' if ts else ''} = 20) {{\n"
                "  return { skip: (page - 1) * size, take: size };\n"
                "}\n",
            )
            out.file(
                f"src/prisma.dto.{ext}",
                "export type CreateUserDto = { email: string; name?: string };\n"
                if ts
                else "module.exports = {};\n",
            )
            dir_type = ": 'asc' | 'desc'" if ts else ""
            out.file(
                f"src/prisma.sort.{ext}",
                f"export function orderBy(field{': string' if ts else ''}, dir{dir_type} = 'asc') {{\n"
                "  return { [field]: dir };\n"
                "}\n",
            )
    if ctx.pattern == "crud" and ctx.style == "advanced":
        out.file(
            f"src/post.service.{ext}",
            "import { prisma } from './prisma';\n\n"
            f"export const listPosts = (authorId{': number' if ts else ''}) =>\n"
            "  prisma.post.findMany({ where: { authorId }, orderBy: { createdAt: 'desc' } });\n",
        )


def graphql(ctx: GenContext, out: Scaffold) -> None:
    if not ctx.is_node:
        return
    out.depends(npm=("graphql",))
    ext = ctx.ext

    if ctx.pattern in ("service", "route", "schema", "graphql-server"):
        out.file("schema.graphql", "type Query {\n  hello: String!\n}\n")
        out.file(
            f"src/graphql/resolvers.{ext}",
            "export const resolvers = { Query: { hello: () => 'world' } };\n",
        )
    if ctx.pattern == "route":
        out.file(
            f"app/api/graphql/route.{ext}",
            "import { graphql, buildSchema } from 'graphql';\n"
            "import { resolvers } from '../../../src/graphql/resolvers';\n\n"
            "const schema = buildSchema('type Query { hello: String! }');\n\n"
            f"export async function POST(req{': Request' if ctx.lang == 'ts' else ''}) {{\n"
            "  const { query, variables } = await req.json();\n"
            "  return Response.json(await graphql({ schema, source: query, rootValue: resolvers.Query, variableValues: variables }));\n"
            "}\n",
        )
    if ctx.pattern in ("service", "graphql-server"):
        out.file(
            f"src/graphql/express-server.{ext}",
            "import express from 'express';\n"
            "import { createHandler } from 'graphql-http/lib/use/express';\n"
            "import { buildSchema } from 'graphql';\n"
            "import { resolvers } from './resolvers';\n\n"
            "const app = express();\n"
            "app.all('/graphql', createHandler({ schema: buildSchema('type Query { hello: String! }'), rootValue: resolvers.Query }));\n"
            "app.listen({{port}});\n",
        )
        out.depends(npm=("express",))
        if ctx.style == "advanced":
            out.file(
                "codegen.yml",
                "schema: schema.graphql\n"
                "generates:\n"
                "  src/graphql/types.ts:\n"
                "    plugins: [typescript, typescript-resolvers]\n",
            )
    if ctx.pattern == "adapter":
        out.file(
            f"src/graphql/adapter.{ext}",
            f"export async function gql(query{': string' if ctx.lang == 'ts' else ''}, variables = {{}}) {{\n"
            "  const res = await fetch('/api/graphql', {\n"
            "    method: 'POST',\n"
            "    headers: { 'content-type': 'application/json' },\n"
            "    body: JSON.stringify({ query, variables }),\n"
            "  });\n"
            "  return res.json();\n"
            "}\n",
        )
    if ctx.pattern in ("client", "graphql-client") and ctx.style == "advanced":
        jsx = ctx.jsx_ext
        out.file(
            f"src/graphql/fragments.{ext}",
            "import { gql } from '@apollo/client';\n\n"
            "export const ITEM_FIELDS = gql`fragment ItemFields on Item { id title }`;\n",
        )
        out.file(
            f"src/graphql/updateCache.{ext}",
            "import { ITEM_FIELDS } from './fragments';\n\n"
            "export function updateTitle(cache, id, title) {\n"
            "  cache.writeFragment({ id: `Item:${id}`, fragment: ITEM_FIELDS, data: { id, title } });\n"
            "}\n",
        )
        out.file(
            f"src/graphql/cachePolicies.{ext}",
            "export const typePolicies = {\n"
            "  Query: { fields: { items: { merge: (_existing, incoming) => incoming } } },\n"
            "};\n",
        )
        out.file(
            f"src/graphql/useUpdateTitle.{jsx}",
            "import { gql, useMutation } from '@apollo/client';\n\n"
            "const UPDATE = gql`mutation UpdateTitle($id: ID!, $title: String!) { updateTitle(id: $id, title: $title) { id title } }`;\n\n"
            "export function useUpdateTitle() {\n"
            "  return useMutation(UPDATE);\n"
            "}\n",
        )
        out.depends(npm=("@apollo/client",))


def apollo(ctx: GenContext, out: Scaffold) -> None:
    if not ctx.is_node:
        return
    ext = ctx.ext

    if ctx.pattern in ("service", "route", "graphql-server"):
        out.depends(npm=("@apollo/server", "graphql"))
        out.file(
            f"src/apollo/server.{ext}",
            "import { ApolloServer } from '@apollo/server';\n"
            "import { startStandaloneServer } from '@apollo/server/standalone';\n\n"
            "const typeDefs = `type Query { hello: String! }`;\n"
            "const resolvers = { Query: { hello: () => 'world' } };\n\n"
            "const server = new ApolloServer({ typeDefs, resolvers });\n"
            "startStandaloneServer(server, { listen: { port: 4000 } });\n",
        )
        if ctx.style == "advanced":
            out.file(
                f"src/apollo/federation.{ext}",
                "import { buildSubgraphSchema } from '@apollo/subgraph';\n"
                "import gql from 'graphql-tag';\n\n"
                "export const schema = buildSubgraphSchema({\n"
                "  typeDefs: gql`type Query { me: User } type User @key(fields: \"id\") { id: ID! }`,\n"
                "});\n",
            )
            out.file(
                f"src/apollo/subscriptions.{ext}",
                "import { PubSub } from 'graphql-subscriptions';\n\n"
                "export const pubsub = new PubSub();\n"
                "export const Subscription = { itemAdded: { subscribe: () => pubsub.asyncIterator(['ITEM_ADDED']) } };\n",
            )
    if ctx.pattern in ("client", "graphql-client"):
        out.depends(npm=("@apollo/client", "graphql"))
        out.file(
            f"src/apollo/client.{ext}",
            "import { ApolloClient, HttpLink, InMemoryCache } from '@apollo/client';\n\n"
            "export const client = new ApolloClient({\n"
            "  link: new HttpLink({ uri: '/api/graphql' }),\n"
            "  cache: new InMemoryCache(),\n"
            "});\n",
        )
    if ctx.pattern == "schema":
        out.depends(npm=("graphql",))
        out.file(
            f"src/graphql/schema.{ext}",
            "export const typeDefs = `type Query { hello: String! }`;\n",
        )
        out.file(
            f"src/graphql/resolvers.{ext}",
            "export const resolvers = { Query: { hello: () => 'world' } };\n",
        )
    if ctx.pattern == "adapter":
        out.file(
            f"src/apollo/adapter.{ext}",
            "import { client } from './client';\n\n"
            "export const query = (doc, variables) => client.query({ query: doc, variables });\n",
        )
