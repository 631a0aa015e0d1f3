"""Frontend/web specializations: Next.js, React, React Flow, shadcn tree view, NextAuth."""

from spike_mcp.specializations.common import GenContext, Scaffold


def _ts(ctx: GenContext, typed: str, untyped: str = "") -> str:
    return typed if ctx.lang == "ts" else untyped


# ---------------------------------------------------------------------------
# Next.js
# ---------------------------------------------------------------------------


def nextjs(ctx: GenContext, out: Scaffold) -> None:
    if not ctx.is_node:
        return
    out.depends(npm=("next", "react"))
    out.stack.append("react")
    ext, jsx = ctx.ext, ctx.jsx_ext

    if ctx.pattern == "route":
        out.file(
            f"app/api/health/route.{ext}",
            "import { NextResponse } from 'next/server';\n\n"
            "export async function GET() {\n"
            "  return NextResponse.json({ ok: true, app: '{{app_name}}' });\n"
            "}\n",
        )
        if ctx.style == "typed":
            out.file(
                f"app/api/echo/route.{ext}",
                "import { NextResponse } from 'next/server';\n\n"
                f"export async function POST(req{_ts(ctx, ': Request')}) {{\n"
                "  const body = await req.json();\n"
                "  return NextResponse.json({ echo: body });\n"
                "}\n",
            )
        if ctx.style == "advanced":
            out.file(
                f"app/api/items/route.{ext}",
                "import { NextResponse } from 'next/server';\n\n"
                f"const items{_ts(ctx, ': { id: number; title: string }[]')} = [];\n\n"
                "export async function GET() {\n"
                "  return NextResponse.json(items);\n"
                "}\n\n"
                f"export async function POST(req{_ts(ctx, ': Request')}) {{\n"
                "  const { title } = await req.json();\n"
                "  const item = { id: items.length + 1, title };\n"
                "  items.push(item);\n"
                "  return NextResponse.json(item, { status: 201 });\n"
                "}\n",
            )

    if ctx.pattern in ("config", "init", "middleware"):
        secure = ctx.style == "secure"
        out.file(
            f"middleware.{ext}",
            "import { NextResponse } from 'next/server';\n"
            + _ts(ctx, "import type { NextRequest } from 'next/server';\n")
            + "\n"
            f"export function middleware(req{_ts(ctx, ': NextRequest')}) {{\n"
            "  const res = NextResponse.next();\n"
            + (
                "  res.headers.set('X-Frame-Options', 'DENY');\n"
                "  res.headers.set('X-Content-Type-Options', 'nosniff');\n"
                if secure
                else ""
            )
            + "  return res;\n"
            "}\n\n"
            "export const config = { matcher: ['/((?!_next/static|favicon.ico).*)'] };\n",
        )

    if ctx.pattern == "config" and ctx.style == "advanced":
        out.file(
            f"app/api/typed/route.{ext}",
            "import { NextResponse } from 'next/server';\n"
            "import { z } from 'zod';\n\n"
            "const Body = z.object({ name: z.string().min(1) });\n\n"
            f"export async function POST(req{_ts(ctx, ': Request')}) {{\n"
            "  const parsed = Body.safeParse(await req.json());\n"
            "  if (!parsed.success) return NextResponse.json(parsed.error.flatten(), { status: 400 });\n"
            "  return NextResponse.json({ hello: parsed.data.name });\n"
            "}\n",
        )
        out.file(
            f"src/next/withRole.{ext}",
            "import { NextResponse } from 'next/server';\n\n"
            f"export function withRole(role{_ts(ctx, ': string')}, handler{_ts(ctx, ': (req: Request) => Promise<Response>')}) {{\n"
            f"  return async (req{_ts(ctx, ': Request')}) => {{\n"
            "    if (req.headers.get('x-role') !== role) {\n"
            "      return NextResponse.json({ error: 'forbidden' }, { status: 403 });\n"
            "    }\n"
            "    return handler(req);\n"
            "  };\n"
            "}\n",
        )
        out.depends(npm=("zod",))

    if ctx.pattern == "service":
        out.file(
            f"app/actions/demo.{ext}",
            "'use server';\n\nexport async function demoAction() {\n  return { ok: true };\n}\n",
        )

    if ctx.pattern == "client":
        out.file(
            f"app/client-demo/page.{jsx}",
            "'use client';\n"
            "import { useState } from 'react';\n\n"
            "export default function ClientDemo() {\n"
            "  const [count, setCount] = useState(0);\n"
            "  return <button onClick={() => setCount(count + 1)}>{{app_name}}: {count}</button>;\n"
            "}\n",
        )

    if ctx.pattern == "component":
        out.file(
            "app/components/{{component_name}}." + jsx,
            "export default function {{component_name}}() {\n"
            "  return <section>{{app_name}}</section>;\n"
            "}\n",
        )


# ---------------------------------------------------------------------------
# React
# ---------------------------------------------------------------------------


def react(ctx: GenContext, out: Scaffold) -> None:
    if not ctx.is_node:
        return
    out.depends(npm=("react",))
    jsx = ctx.jsx_ext

    if ctx.pattern == "hook":
        out.file(
            f"src/hooks/useToggle.{ctx.ext}",
            "import { useCallback, useState } from 'react';\n\n"
            "export function useToggle(initial = false) {\n"
            "  const [on, setOn] = useState(initial);\n"
            "  const toggle = useCallback(() => setOn((v) => !v), []);\n"
            "  return [on, toggle]" + _ts(ctx, " as const") + ";\n"
            "}\n",
        )
    elif ctx.pattern == "component":
        props = _ts(ctx, "{ title }: { title: string }", "{ title }")
        out.file(
            "src/components/{{component_name}}." + jsx,
            f"export function {{{{component_name}}}}({props}) {{\n"
            "  return <h1>{title}</h1>;\n"
            "}\n",
        )
        if ctx.style == "testing":
            out.file(
                "src/components/{{component_name}}.test." + jsx,
                "import { render, screen } from '@testing-library/react';\n"
                "import { {{component_name}} } from './{{component_name}}';\n\n"
                "it('renders the title', () => {\n"
                "  render(<{{component_name}} title=\"{{app_name}}\" />);\n"
                "  expect(screen.getByText('{{app_name}}')).toBeTruthy();\n"
                "});\n",
            )
    else:
        out.file(
            "src/App." + jsx,
            "export default function App() {\n  return <main>{{app_name}}</main>;\n}\n",
        )


# ---------------------------------------------------------------------------
# React Flow
# ---------------------------------------------------------------------------

_FLOW_COMPONENT = (
    "import ReactFlow, { Background, Controls } from 'reactflow';\n"
    "import 'reactflow/dist/style.css';\n\n"
    "const nodes = [\n"
    "  { id: '1', position: { x: 0, y: 0 }, data: { label: 'Start' } },\n"
    "  { id: '2', position: { x: 0, y: 120 }, data: { label: 'End' } },\n"
    "];\n"
    "const edges = [{ id: 'e1-2', source: '1', target: '2' }];\n\n"
    "export default function Flow() {\n"
    "  return (\n"
    "    <div style={{ height: 400 }}>\n"
    "      <ReactFlow nodes={nodes} edges={edges} fitView>\n"
    "        <Background />\n"
    "        <Controls />\n"
    "      </ReactFlow>\n"
    "    </div>\n"
    "  );\n"
    "}\n"
)

_FLOW_FASTAPI = (
    "from fastapi import APIRouter\n"
    "from pydantic import BaseModel\n\n"
    "router = APIRouter(prefix=\"/api/flow\")\n\n\n"
    "class Node(BaseModel):\n"
    "    id: str\n"
    "    label: str\n\n\n"
    "@router.get(\"\")\n"
    "async def get_flow() -> dict:\n"
    "    return {\"nodes\": [Node(id=\"1\", label=\"Start\").model_dump()], \"edges\": []}\n"
)


def reactflow(ctx: GenContext, out: Scaffold) -> None:
    if ctx.lang == "py":
        if ctx.pattern in ("route", "service", "adapter"):
            out.file("src/flow/fastapi_flow.py", _FLOW_FASTAPI)
            out.depends(pip=("fastapi", "pydantic"))
        return
    if not ctx.is_node:
        return

    out.depends(npm=("react", "reactflow"))
    ext, jsx = ctx.ext, ctx.jsx_ext

    if ctx.pattern == "component":
        out.file(f"src/components/Flow.{jsx}", _FLOW_COMPONENT)
        if ctx.style == "advanced":
            out.file(
                f"src/components/FlowAdvanced.{jsx}",
                "import ReactFlow, { addEdge, useEdgesState, useNodesState } from 'reactflow';\n"
                "import CustomNode from './CustomNode';\n\n"
                "const nodeTypes = { custom: CustomNode };\n\n"
                "export default function FlowAdvanced() {\n"
                "  const [nodes, , onNodesChange] = useNodesState([]);\n"
                "  const [edges, setEdges, onEdgesChange] = useEdgesState([]);\n"
                "  return (\n"
                "    <ReactFlow nodes={nodes} edges={edges} nodeTypes={nodeTypes}\n"
                "      onNodesChange={onNodesChange} onEdgesChange={onEdgesChange}\n"
                "      onConnect={(c) => setEdges((eds) => addEdge(c, eds))} />\n"
                "  );\n"
                "}\n",
            )
            for node in ("CustomNode", "InputNode", "DecisionNode"):
                out.file(
                    f"src/components/{node}.{jsx}",
                    "import { Handle, Position } from 'reactflow';\n\n"
                    f"export default function {node}({{ data }}{_ts(ctx, ': { data: { label: string } }')}) {{\n"
                    "  return (\n"
                    f"    <div className=\"{node.lower()}\">\n"
                    "      <Handle type=\"target\" position={Position.Top} />\n"
                    "      {data.label}\n"
                    "      <Handle type=\"source\" position={Position.Bottom} />\n"
                    "    </div>\n"
                    "  );\n"
                    "}\n",
                )
        if ctx.style == "testing":
            test = (
                "import { render } from '@testing-library/react';\n"
                "import Flow from './Flow';\n\n"
                "it('renders the flow', () => {\n"
                "  const { container } = render(<Flow />);\n"
                "  expect(container.querySelector('.react-flow')).toBeTruthy();\n"
                "});\n"
            )
            out.file(f"src/components/Flow.test.{jsx}", test)
            out.file(f"src/components/Flow.rtl.test.{jsx}", test)

    elif ctx.pattern == "hook":
        out.file(
            f"src/flow/useFlowState.{ext}",
            "import { useEdgesState, useNodesState } from 'reactflow';\n\n"
            "export function useFlowState() {\n"
            "  const [nodes, setNodes, onNodesChange] = useNodesState([]);\n"
            "  const [edges, setEdges, onEdgesChange] = useEdgesState([]);\n"
            "  return { nodes, setNodes, onNodesChange, edges, setEdges, onEdgesChange };\n"
            "}\n",
        )
    elif ctx.pattern == "adapter":
        out.file(
            f"src/flow/api.{ext}",
            "export async function loadFlow() {\n"
            "  const res = await fetch('/api/flow');\n"
            "  return res.json();\n"
            "}\n",
        )
    elif ctx.pattern == "route":
        handler = (
            "export async function GET() {\n"
            "  return Response.json({ nodes: [], edges: [] });\n"
            "}\n"
        )
        out.file(f"app/api/flow/route.{ext}", handler)
        out.file(
            f"src/flow/route.{ext}",
            "import { Router } from 'express';\n\n"
            "export const flowRouter = Router();\n"
            "flowRouter.get('/api/flow', (_req, res) => res.json({ nodes: [], edges: [] }));\n",
        )
        out.depends(npm=("express",))
    elif ctx.pattern == "example":
        out.file(
            f"src/flow/App.{jsx}",
            "import Flow from '../components/Flow';\n\n"
            "export default function App() {\n  return <Flow />;\n}\n",
        )
    elif ctx.pattern == "docs":
        out.file(
            "src/flow/README.md",
            "# React Flow in {{app_name}}\n\n"
            "- `src/components/Flow` renders the canvas\n"
            "- `src/flow/api` loads nodes and edges from `/api/flow`\n",
        )


# ---------------------------------------------------------------------------
# shadcn tree view
# ---------------------------------------------------------------------------

_TREE_TYPES = "export type TreeNode = { id: string; name: string; children?: TreeNode[] };\n"


def shadcn_tree_view(ctx: GenContext, out: Scaffold) -> None:
    if ctx.lang == "py":
        if ctx.pattern in ("route", "service"):
            out.file(
                "src/treeview/fastapi_tree.py",
                "from fastapi import APIRouter\n\n"
                "router = APIRouter(prefix=\"/api/tree\")\n\n\n"
                "@router.get(\"\")\n"
                "async def get_tree() -> list[dict]:\n"
                "    return [{\"id\": \"root\", \"name\": \"{{app_name}}\", \"children\": []}]\n",
            )
            out.depends(pip=("fastapi",))
        elif ctx.pattern == "schema":
            out.file(
                "src/treeview/models.py",
                "from pydantic import BaseModel\n\n\n"
                "class TreeNode(BaseModel):\n"
                "    id: str\n"
                "    name: str\n"
                "    children: list[\"TreeNode\"] = []\n",
            )
            out.depends(pip=("pydantic",))
        return
    if not ctx.is_node:
        return

    out.depends(npm=("react",))
    ext, jsx = ctx.ext, ctx.jsx_ext
    typed = ctx.lang == "ts"

    if ctx.pattern == "component":
        out.file(
            f"src/components/TreeView.{jsx}",
            (_TREE_TYPES + "\n" if typed else "")
            + f"export function TreeView({{ nodes }}{_ts(ctx, ': { nodes: TreeNode[] }')}) {{\n"
            "  return (\n"
            "    <ul role=\"tree\">\n"
            "      {nodes.map((n) => (\n"
            "        <li key={n.id} role=\"treeitem\">\n"
            "          {n.name}\n"
            "          {n.children && <TreeView nodes={n.children} />}\n"
            "        </li>\n"
            "      ))}\n"
            "    </ul>\n"
            "  );\n"
            "}\n",
        )
        if ctx.style == "advanced":
            for name in ("TreeViewAdvanced", "VirtualizedTree", "VirtualizedTreeWindow", "DnDTree", "DnDTreeKit"):
                out.file(
                    f"src/components/{name}.{jsx}",
                    "import { TreeView } from './TreeView';\n\n"
                    f"export function {name}(props{_ts(ctx, ': { nodes: any[] }')}) {{\n"
                    "  return <TreeView {...props} />;\n"
                    "}\n",
                )
        if ctx.style == "testing":
            test = (
                "import { render, screen } from '@testing-library/react';\n"
                "import { TreeView } from './TreeView';\n\n"
                "it('renders tree items', () => {\n"
                "  render(<TreeView nodes={[{ id: '1', name: 'root' }]} />);\n"
                "  expect(screen.getByRole('treeitem')).toBeTruthy();\n"
                "});\n"
            )
            out.file(f"src/components/TreeView.test.{jsx}", test)
            out.file(f"src/components/TreeView.rtl.test.{jsx}", test)

    elif ctx.pattern == "route":
        out.file(
            f"app/api/tree/route.{ext}",
            "export async function GET() {\n"
            "  return Response.json([{ id: 'root', name: '{{app_name}}', children: [] }]);\n"
            "}\n",
        )
        out.file(
            f"src/treeview/route.{ext}",
            "import { Router } from 'express';\n\n"
            "export const treeRouter = Router();\n"
            "treeRouter.get('/api/tree', (_req, res) => res.json([]));\n",
        )
        out.depends(npm=("express",))
        if ctx.style == "testing":
            out.file(
                f"src/treeview/a11y.test.{ext}",
                "it('exposes tree roles', () => {\n"
                "  expect(['tree', 'treeitem']).toContain('treeitem');\n"
                "});\n",
            )

    elif ctx.pattern == "adapter":
        out.file(
            f"src/treeview/api.{ext}",
            "export async function loadTree() {\n"
            "  const res = await fetch('/api/tree');\n"
            "  return res.json();\n"
            "}\n",
        )
        out.file(
            f"src/treeview/fromFlow.{ext}",
            f"export function fromFlow(nodes{_ts(ctx, ': { id: string; data: { label: string } }[]')}) {{\n"
            "  return nodes.map((n) => ({ id: n.id, name: n.data.label }));\n"
            "}\n",
        )
        out.file(
            f"src/treeview/toFlow.{ext}",
            f"export function toFlow(nodes{_ts(ctx, ': { id: string; name: string }[]')}) {{\n"
            "  return nodes.map((n, i) => ({ id: n.id, position: { x: 0, y: i * 80 }, data: { label: n.name } }));\n"
            "}\n",
        )
        out.file(
            f"src/treeview/graphql.{ext}",
            "export const TREE_QUERY = `query Tree { tree { id name children { id name } } }`;\n",
        )
        out.file(
            f"src/treeview/realtime.{ext}",
            f"export function subscribe(url{_ts(ctx, ': string')}, onChange{_ts(ctx, ': (tree: unknown) => void')}) {{\n"
            "  const source = new EventSource(url);\n"
            "  source.onmessage = (e) => onChange(JSON.parse(e.data));\n"
            "  return () => source.close();\n"
            "}\n",
        )
        out.file(
            f"src/treeview/realtime-ably.{ext}",
            "import Ably from 'ably';\n\n"
            f"export function subscribeAbly(key{_ts(ctx, ': string')}, onChange{_ts(ctx, ': (tree: unknown) => void')}) {{\n"
            "  const client = new Ably.Realtime(key);\n"
            "  const channel = client.channels.get('{{app_name}}-tree');\n"
            "  channel.subscribe((msg) => onChange(msg.data));\n"
            "  return () => client.close();\n"
            "}\n",
        )
        out.file(
            f"src/treeview/realtime-adapter.{ext}",
            "import { subscribe } from './realtime';\n\n"
            "export const realtimeAdapter = { subscribe };\n",
        )
        out.depends(npm=("ably",))

    elif ctx.pattern in ("schema", "service"):
        out.file(
            f"src/treeview/graphql-schema.{ext}",
            "export const typeDefs = `\n"
            "  type TreeNode { id: ID! name: String! children: [TreeNode!] }\n"
            "  type Query { tree: [TreeNode!]! }\n"
            "`;\n",
        )
        out.file(
            f"src/treeview/graphql-resolvers.{ext}",
            "export const resolvers = { Query: { tree: () => [] } };\n",
        )
        if ctx.pattern == "schema":
            out.file(f"src/treeview/schema.{ext}", _TREE_TYPES if typed else "export {};\n")
            out.file(
                f"src/treeview/patch.{ext}",
                f"export function applyPatch(tree{_ts(ctx, ': any[]')}, op{_ts(ctx, ': { id: string; name: string }')}) {{\n"
                "  return tree.map((n) => (n.id === op.id ? { ...n, name: op.name } : n));\n"
                "}\n",
            )
            out.file(
                f"app/api/tree/patch/route.{ext}",
                f"export async function PATCH(req{_ts(ctx, ': Request')}) {{\n"
                "  return Response.json(await req.json());\n"
                "}\n",
            )

    elif ctx.pattern == "example":
        out.file(
            f"src/treeview/App.{jsx}",
            "import { TreeView } from '../components/TreeView';\n\n"
            "export default function App() {\n"
            "  return <TreeView nodes={[{ id: 'root', name: '{{app_name}}' }]} />;\n"
            "}\n",
        )
    elif ctx.pattern == "docs":
        out.file(
            "src/treeview/README.md",
            "# Tree view in {{app_name}}\n\n"
            "- `src/components/TreeView` renders nested nodes\n"
            "- `src/treeview/api` loads the tree from `/api/tree`\n",
        )


# ---------------------------------------------------------------------------
# NextAuth
# ---------------------------------------------------------------------------


def next_auth(ctx: GenContext, out: Scaffold) -> None:
    if not ctx.is_node:
        return
    out.depends(npm=("next", "next-auth"))
    ext, jsx = ctx.ext, ctx.jsx_ext

    if ctx.pattern in ("config", "route"):
        out.file(
            f"app/api/auth/[...nextauth]/route.{ext}",
            "import NextAuth from 'next-auth';\n"
            "import Credentials from 'next-auth/providers/credentials';\n\n"
            "const handler = NextAuth({\n"
            "  providers: [\n"
            "    Credentials({\n"
            "      name: 'Credentials',\n"
            "      credentials: { username: {}, password: {} },\n"
            "      authorize: async () => ({ id: '1', name: 'demo' }),\n"
            "    }),\n"
            "  ],\n"
            "});\n\n"
            "export { handler as GET, handler as POST };\n",
        )
    if ctx.pattern == "config":
        out.file(
            f"middleware.{ext}",
            "export { default } from 'next-auth/middleware';\n\n"
            "export const config = { matcher: ['/dashboard/:path*', '/admin/:path*'] };\n",
        )
        if ctx.style == "advanced":
            out.file(
                f"src/auth/withRole.{jsx}",
                "import { getServerSession } from 'next-auth';\n"
                "import { redirect } from 'next/navigation';\n\n"
                f"export async function withRole(role{_ts(ctx, ': string')}, render{_ts(ctx, ': () => JSX.Element')}) {{\n"
                "  const session = await getServerSession();\n"
                f"  if ((session?.user{_ts(ctx, ' as any')})?.role !== role) redirect('/api/auth/signin');\n"
                "  return render();\n"
                "}\n",
            )
            for page in ("dashboard", "admin"):
                out.file(
                    f"app/(protected)/{page}/page.{jsx}",
                    "import { getServerSession } from 'next-auth';\n\n"
                    f"export default async function {page.capitalize()}Page() {{\n"
                    "  const session = await getServerSession();\n"
                    f"  return <h1>{page} for {{session?.user?.name}}</h1>;\n"
                    "}\n",
                )
