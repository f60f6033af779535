"""
Command line client for the Gemini image MCP server.

Talks to the server over the streamable-http transport (JSON-RPC over HTTP,
with optional SSE framing of responses).
"""
import argparse
import base64
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

MCP_ENDPOINT = "http://127.0.0.1:8000/mcp"
REQUEST_TIMEOUT = 300  # Generation can take a while
REQUEST_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json, text/event-stream",
}


def parse_sse_response(response_text: str) -> dict:
    """Parse Server-Sent Events (SSE) response format."""
    lines = response_text.replace("\r\n", "\n").split("\n")
    for line in lines:
        line = line.strip()
        if line.startswith("data: "):
            try:
                return json.loads(line[6:])
            except json.JSONDecodeError:
                continue
    raise ValueError("No valid JSON data found in SSE response")


def _make_request(endpoint: str, method: str, params: Dict[str, Any], request_id: int = 1) -> Optional[dict]:
    """Make an MCP JSON-RPC request and return the parsed response."""
    request = {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": method,
        "params": params,
    }

    try:
        response = requests.post(endpoint, json=request, headers=REQUEST_HEADERS, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        if "text/event-stream" in response.headers.get("content-type", ""):
            return parse_sse_response(response.text)
        return response.json()
    except requests.RequestException as e:
        print(f"Request error: {e}", file=sys.stderr)
        return None
    except ValueError as e:
        print(f"Error parsing response: {e}", file=sys.stderr)
        return None


def extract_tool_payload(result: dict) -> Optional[dict]:
    """Pull the tool's dict result out of a tools/call JSON-RPC response."""
    if "error" in result:
        print(json.dumps(result["error"], indent=2), file=sys.stderr)
        return None

    result_data = result.get("result", {})
    if isinstance(result_data.get("structuredContent"), dict):
        return result_data["structuredContent"]

    for item in result_data.get("content") or []:
        if isinstance(item, dict) and "text" in item:
            try:
                return json.loads(item["text"])
            except (json.JSONDecodeError, TypeError):
                continue
    return result_data


def call_tool(endpoint: str, tool_name: str, arguments: Dict[str, Any]) -> Optional[dict]:
    result = _make_request(endpoint, "tools/call", {"name": tool_name, "arguments": arguments}, request_id=2)
    if not result:
        return None
    return extract_tool_payload(result)


def list_tools(endpoint: str) -> List[dict]:
    result = _make_request(endpoint, "tools/list", {})
    if not result:
        return []
    tools = result.get("result", {}).get("tools", [])
    for tool in tools:
        summary = (tool.get("description") or "").split("\n")[0].strip()
        print(f"  • {tool.get('name', 'unknown')}: {summary[:80]}")
    return tools


def save_image(payload: dict, output: Path) -> Path:
    """Decode image_base64 from a generation result and write it to disk."""
    output.write_bytes(base64.b64decode(payload["image_base64"]))
    return output


def _print_payload(payload: Optional[dict]) -> int:
    if payload is None:
        return 1
    shown = {k: v for k, v in payload.items() if k != "image_base64"}
    print(json.dumps(shown, indent=2))
    return 1 if "error" in payload else 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Client for the Gemini image MCP server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python client.py tools
  python client.py generate -p "a cat on a mat" -o cat.jpg
  python client.py generate -p "same cat, at night" -r https://example.com/cat.png -r gs://bucket/mat.png
  python client.py register gs://bucket/cat.png
        """,
    )
    parser.add_argument("--endpoint", default=MCP_ENDPOINT, help=f"MCP endpoint (default: {MCP_ENDPOINT})")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("tools", help="List available tools")
    sub.add_parser("config", help="Show the server's effective configuration")

    gen = sub.add_parser("generate", help="Generate an image")
    gen.add_argument("-p", "--prompt", required=True)
    gen.add_argument("-n", "--negative-prompt", default="")
    gen.add_argument("-r", "--reference", action="append", default=[], help="Reference image URL (repeatable)")
    gen.add_argument("-a", "--aspect-ratio", default="")
    gen.add_argument("-s", "--seed", type=int, default=None)
    gen.add_argument("-o", "--output", type=Path, default=None, help="Write the image to this file")

    reg = sub.add_parser("register", help="Register a reference image with the Files API")
    reg.add_argument("source_uri")
    unreg = sub.add_parser("unregister", help="Delete a registered reference image")
    unreg.add_argument("source_uri")

    args = parser.parse_args(argv)

    if args.command == "tools":
        return 0 if list_tools(args.endpoint) else 1
    if args.command == "config":
        return _print_payload(call_tool(args.endpoint, "get_config", {}))
    if args.command in ("register", "unregister"):
        tool = f"{args.command}_asset"
        return _print_payload(call_tool(args.endpoint, tool, {"source_uri": args.source_uri}))

    arguments: Dict[str, Any] = {"prompt": args.prompt, "negative_prompt": args.negative_prompt}
    if args.aspect_ratio:
        arguments["aspect_ratio"] = args.aspect_ratio
    if args.seed is not None:
        arguments["seed"] = args.seed
    if len(args.reference) > 1:
        tool_name = "generate_page"
        arguments["reference_urls"] = args.reference
    else:
        tool_name = "generate_image"
        if args.reference:
            arguments["reference_url"] = args.reference[0]

    payload = call_tool(args.endpoint, tool_name, arguments)
    status = _print_payload(payload)
    if status == 0 and args.output and payload.get("image_base64"):
        print(f"Saved image to {save_image(payload, args.output)}")
    return status


if __name__ == "__main__":
    sys.exit(main())
