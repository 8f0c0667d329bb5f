#!/usr/bin/env python3
"""
A minimal agent served behind the Tetto gateway.

The standard library HTTP server is enough to try it locally:

    ANTHROPIC_API_KEY=sk-ant-... python examples/simple_agent.py
"""
import logging
from http.server import BaseHTTPRequestHandler, HTTPServer

from tetto_sdk.agent import create_agent_handler, create_anthropic, load_agent_env

env = load_agent_env({"ANTHROPIC_API_KEY": "required", "CLAUDE_MODEL": "optional"})
anthropic = create_anthropic(env["ANTHROPIC_API_KEY"])
model = env["CLAUDE_MODEL"] or "claude-3-5-haiku-20241022"


def generate_title(input, context):
    caller = context.tetto_context
    logging.info(f"Request {caller.intent_id} from {caller.caller_agent_id or caller.caller_wallet}")

    message = anthropic.messages.create(
        model=model,
        max_tokens=60,
        messages=[{"role": "user", "content": f"Write a short title for:\n\n{input['text']}"}],
    )
    return {"title": message.content[0].text.strip()}


handle = create_agent_handler(generate_title)


class AgentRequestHandler(BaseHTTPRequestHandler):
    def do_POST(self):
        length = int(self.headers.get("Content-Length", 0))
        response = handle(self.rfile.read(length))

        payload = response.to_json().encode("utf-8")
        self.send_response(response.status_code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    HTTPServer(("127.0.0.1", 8000), AgentRequestHandler).serve_forever()
