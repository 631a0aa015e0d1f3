"""HTTP server and payment specializations: Express, FastAPI, Elysia, Stripe."""

from spike_mcp.specializations.common import GenContext, Scaffold


def _ts(ctx: GenContext, typed: str, untyped: str = "") -> str:
    return typed if ctx.lang == "ts" else untyped


def express(ctx: GenContext, out: Scaffold) -> None:
    if not ctx.is_node:
        return
    out.depends(npm=("express",))
    ext = ctx.ext
    imports = (
        "import express, { Request, Response } from 'express';\n"
        if ctx.lang == "ts"
        else "const express = require('express');\n"
    )

    if ctx.pattern == "config":
        app_type = _ts(ctx, ': import("express").Express')
        out.file(
            f"src/express/security.{ext}",
            f"export function security(app{app_type}) {{\n"
            "  app.disable('x-powered-by');\n"
            "  app.use((_req, res, next) => {\n"
            "    res.setHeader('X-Content-Type-Options', 'nosniff');\n"
            "    res.setHeader('X-Frame-Options', 'DENY');\n"
            "    next();\n"
            "  });\n"
            "}\n",
        )
        if ctx.style == "advanced":
            out.file(
                f"src/express/errors.{ext}",
                f"export function errorHandler(err{_ts(ctx, ': Error')}, _req{_ts(ctx, ': any')}, res{_ts(ctx, ': any')}, _next{_ts(ctx, ': any')}) {{\n"
                "  res.status(500).json({ error: err.message });\n"
                "}\n",
            )
    elif ctx.pattern == "route":
        req_res = _ts(ctx, "req: Request, res: Response", "req, res")
        out.file(
            f"src/routes/health.{ext}",
            imports
            + "\nconst app = express();\n"
            f"app.get('/health', ({req_res}) => {{\n"
            "  res.json({ ok: true, app: '{{app_name}}' });\n"
            "});\n"
            "app.listen({{port}});\n",
        )
    elif ctx.pattern == "middleware":
        out.file(
            f"src/express/middleware.{ext}",
            f"export function requestLogger(req{_ts(ctx, ': any')}, _res{_ts(ctx, ': any')}, next{_ts(ctx, ': () => void')}) {{\n"
            "  console.log(`${req.method} ${req.url}`);\n"
            "  next();\n"
            "}\n",
        )
    else:
        out.file(
            f"src/server.{ext}",
            imports
            + "\nconst app = express();\n"
            "app.use(express.json());\n"
            "app.listen({{port}}, () => console.log('{{app_name}} listening on {{port}}'));\n",
        )


def fastapi(ctx: GenContext, out: Scaffold) -> None:
    if ctx.lang != "py":
        return
    out.depends(pip=("fastapi", "uvicorn"))
    out.param("route", "health", "Route name for the generated endpoint")

    out.file(
        "app/main.py",
        "from fastapi import FastAPI\n\n"
        'app = FastAPI(title="{{app_name}}")\n\n\n'
        '@app.get("/{{route}}")\n'
        "async def health() -> dict:\n"
        '    return {"ok": True}\n',
    )
    if ctx.pattern == "middleware":
        out.file(
            "app/middleware.py",
            "import time\n\n"
            "from fastapi import Request\n\n\n"
            "async def timing(request: Request, call_next):\n"
            "    start = time.perf_counter()\n"
            "    response = await call_next(request)\n"
            '    response.headers["X-Process-Time"] = f"{time.perf_counter() - start:.4f}"\n'
            "    return response\n",
        )
    elif ctx.pattern == "schema":
        out.file(
            "app/schemas.py",
            "from pydantic import BaseModel\n\n\n"
            "class {{model}}(BaseModel):\n"
            "    id: int\n"
            "    name: str\n",
        )
        out.depends(pip=("pydantic",))
    elif ctx.pattern in ("service", "crud", "controller"):
        out.file(
            "app/services/items.py",
            "_items: dict[int, dict] = {}\n\n\n"
            "def create(item: dict) -> dict:\n"
            "    item_id = len(_items) + 1\n"
            '    _items[item_id] = {"id": item_id, **item}\n'
            "    return _items[item_id]\n\n\n"
            "def get(item_id: int) -> dict | None:\n"
            "    return _items.get(item_id)\n",
        )
    if ctx.style == "testing":
        out.file(
            "tests/test_main.py",
            "from fastapi.testclient import TestClient\n\n"
            "from app.main import app\n\n\n"
            "def test_health():\n"
            "    client = TestClient(app)\n"
            '    assert client.get("/{{route}}").json() == {"ok": True}\n',
        )
        out.depends(pip=("httpx", "pytest"))


def elysia(ctx: GenContext, out: Scaffold) -> None:
    """Shared by ``bun-elysia`` and ``elysia``."""
    if not ctx.is_node:
        return
    out.depends(npm=("elysia",))
    out.stack.append("bun")
    ext = ctx.ext
    typed = ctx.style == "typed" and ctx.lang == "ts"

    if ctx.pattern == "worker":
        out.file(
            f"src/worker.{ext}",
            (
                "declare var self: Worker;\n\n"
                "type Job = { id: string; payload: unknown };\n\n"
                "self.onmessage = (event: MessageEvent<Job>) => {\n"
                if ctx.lang == "ts"
                else "self.onmessage = (event) => {\n"
            )
            + "  const job = event.data;\n"
            "  postMessage({ id: job.id, done: true });\n"
            "};\n",
        )
        out.file(
            f"src/index.{ext}",
            "import { Elysia" + (", t" if typed else "") + " } from 'elysia';\n\n"
            "const worker = new Worker(new URL('./worker." + ext + "', import.meta.url).href);\n\n"
            "new Elysia()\n"
            "  .post('/jobs', ({ body }) => {\n"
            "    worker.postMessage({ id: crypto.randomUUID(), payload: body });\n"
            "    return { queued: true };\n"
            "  }"
            + (", { body: t.Object({ task: t.String() }) }" if typed else "")
            + ")\n"
            "  .listen({{port}});\n",
        )
    else:
        out.file(
            f"src/index.{ext}",
            "import { Elysia" + (", t" if typed else "") + " } from 'elysia';\n\n"
            "new Elysia()\n"
            "  .get('/health', () => ({ ok: true, app: '{{app_name}}' }))\n"
            + (
                "  .post('/echo', ({ body }) => body, { body: t.Object({ message: t.String() }) })\n"
                if typed
                else ""
            )
            + "  .listen({{port}});\n",
        )


def stripe(ctx: GenContext, out: Scaffold) -> None:
    if ctx.lang == "py":
        out.depends(pip=("stripe",))
        out.file(
            "app/payments/stripe_client.py",
            "import os\n\nimport stripe\n\n"
            'stripe.api_key = os.environ["STRIPE_SECRET_KEY"]\n\n\n'
            "def create_checkout(price_id: str, success_url: str) -> str:\n"
            "    session = stripe.checkout.Session.create(\n"
            '        mode="payment",\n'
            '        line_items=[{"price": price_id, "quantity": 1}],\n'
            "        success_url=success_url,\n"
            "    )\n"
            "    return session.url\n",
        )
        if ctx.pattern == "webhook":
            out.file(
                "app/payments/webhook.py",
                "import os\n\nimport stripe\n\n\n"
                "def handle(payload: bytes, signature: str) -> str:\n"
                "    event = stripe.Webhook.construct_event(\n"
                '        payload, signature, os.environ["STRIPE_WEBHOOK_SECRET"]\n'
                "    )\n"
                '    return event["type"]\n',
            )
        return
    if not ctx.is_node:
        return

    out.depends(npm=("stripe",))
    ext = ctx.ext
    out.file(
        f"src/stripe/client.{ext}",
        "import Stripe from 'stripe';\n\n"
        f"export const stripe = new Stripe(process.env.STRIPE_SECRET_KEY{_ts(ctx, '!')});\n",
    )
    if ctx.pattern == "webhook":
        out.file(
            f"app/api/stripe/webhook/route.{ext}",
            "import { stripe } from '../../../../src/stripe/client';\n\n"
            f"export async function POST(req{_ts(ctx, ': Request')}) {{\n"
            "  const sig = req.headers.get('stripe-signature') ?? '';\n"
            "  const event = stripe.webhooks.constructEvent(await req.text(), sig, process.env.STRIPE_WEBHOOK_SECRET"
            + _ts(ctx, "!")
            + ");\n"
            "  return Response.json({ received: event.type });\n"
            "}\n",
        )
    elif ctx.pattern in ("service", "crud", "route"):
        out.file(
            f"src/stripe/checkout.{ext}",
            "import { stripe } from './client';\n\n"
            f"export async function createCheckout(priceId{_ts(ctx, ': string')}) {{\n"
            "  const session = await stripe.checkout.sessions.create({\n"
            "    mode: 'payment',\n"
            "    line_items: [{ price: priceId, quantity: 1 }],\n"
            "    success_url: 'https://example.com/{{app_name}}/success',\n"
            "  });\n"
            "  return session.url;\n"
            "}\n",
        )
