"""
=============================================================================
EXAMPLE: TODO API WITH MIDDLEWARE
=============================================================================

A small application built on TinyServe:

1. Exact-path JSON routes (GET, POST, PUT, DELETE)
2. Query-string and form parameters
3. Middleware: CORS, request IDs, cache headers, a bearer-token check
4. Static files from ./public for everything else

    ┌─────────────────────────────────────────────────────────────────┐
    │  curl http://localhost:8080/api/todos                            │
    └─────────────────────────────────────────────────────────────────┘
                                    │
                                    ▼
    ┌─────────────────────────────────────────────────────────────────┐
    │  MIDDLEWARE (in order added)                                     │
    │    CORS → request id → cache control → admin token check         │
    └─────────────────────────────────────────────────────────────────┘
                                    │
                                    ▼
    ┌─────────────────────────────────────────────────────────────────┐
    │  ROUTE ("GET", "/api/todos") → list_todos(request, response)     │
    │  no route? GET falls back to ./public, otherwise 404             │
    └─────────────────────────────────────────────────────────────────┘

Routes match exact paths only, so there is no "/api/todos/:id": the id
travels as a query parameter instead (/api/todos/item?id=2).

=============================================================================
"""

import sys
import time
from pathlib import Path

# Run from a checkout without installing the package
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tinyserve import ServerConfig, TinyServe
from tinyserve.handlers import register_default_routes
from tinyserve.middleware import CacheControlMiddleware, CORSMiddleware, RequestIdMiddleware

ADMIN_TOKEN = "Bearer secret-token-12345"


# =============================================================================
# IN-MEMORY DATABASE
# =============================================================================
# The server handles one request at a time, so plain dicts are safe here.

todos_db: dict[int, dict] = {
    1: {"id": 1, "title": "Read RFC 9110", "completed": True},
    2: {"id": 2, "title": "Build TinyServe", "completed": True},
    3: {"id": 3, "title": "Deploy app", "completed": False},
}

next_id = 4


def _todo_from_query(request, response):
    """Resolve ?id=N to a todo, writing a 400/404 body if that fails."""
    raw_id = request.get_param("id")
    if raw_id is None or not raw_id.isdigit():
        response.json({"error": "Query parameter 'id' must be a number"}, status=400)
        return None

    todo = todos_db.get(int(raw_id))
    if todo is None:
        response.json({"error": f"Todo {raw_id} not found"}, status=404)
    return todo


def require_admin_token(request, response):
    """Reject /api/admin/* without the bearer token."""
    if not request.path.startswith("/api/admin"):
        return True

    if request.get_header("Authorization") != ADMIN_TOKEN:
        response.json({
            "error": "Unauthorized",
            "message": "Valid authorization token required",
        }, status=401)
        return False

    return True


def build_server(root: str = "./public") -> TinyServe:
    server = TinyServe(ServerConfig(host="127.0.0.1", port=8080, root=root))

    # =========================================================================
    # MIDDLEWARE
    # =========================================================================
    # CORS goes first so preflights are answered before the token check.

    server.add_middleware(CORSMiddleware())
    server.add_middleware(RequestIdMiddleware())
    server.add_middleware(CacheControlMiddleware(max_age=3600))
    server.add_middleware(require_admin_token)

    register_default_routes(server)

    # =========================================================================
    # ROUTES
    # =========================================================================

    @server.get("/api/greet")
    def greet(request, response):
        name = request.get_param("name") or "Guest"
        response.json({"greeting": f"Hello, {name}!", "timestamp": int(time.time())})

    @server.get("/api/todos")
    def list_todos(request, response):
        response.json(list(todos_db.values()))

    @server.post("/api/todos")
    def create_todo(request, response):
        global next_id

        data = request.json if request.has_json else None
        if not isinstance(data, dict) or not data.get("title"):
            response.json({"error": "Title is required"}, status=400)
            return

        todo = {
            "id": next_id,
            "title": data["title"],
            "completed": bool(data.get("completed", False)),
        }
        todos_db[next_id] = todo
        next_id += 1

        response.json(todo, status=201)

    @server.get("/api/todos/item")
    def get_todo(request, response):
        todo = _todo_from_query(request, response)
        if todo is not None:
            response.json(todo)

    @server.put("/api/todos/item")
    def update_todo(request, response):
        todo = _todo_from_query(request, response)
        if todo is None:
            return

        updates = request.json if request.has_json else {}
        if not isinstance(updates, dict):
            response.json({"error": "Expected a JSON object"}, status=400)
            return

        for key in ("title", "completed"):
            if key in updates:
                todo[key] = updates[key]
        response.json(todo)

    @server.delete("/api/todos/item")
    def delete_todo(request, response):
        todo = _todo_from_query(request, response)
        if todo is not None:
            del todos_db[todo["id"]]
            response.status = 204

    @server.post("/api/upload")
    def upload(request, response):
        response.json({
            "success": True,
            "size": len(request.body),
            "content_type": request.content_type,
            "fields": sorted(request.params),
        })

    @server.get("/api/admin/stats")
    def admin_stats(request, response):
        done = sum(1 for todo in todos_db.values() if todo["completed"])
        response.json({"todos": len(todos_db), "completed": done, "uptime": server.uptime})

    return server


def main():
    server = build_server()

    print("Try:")
    print("  curl 'http://localhost:8080/api/greet?name=Ada'")
    print("  curl http://localhost:8080/api/todos")
    print("  curl -X POST http://localhost:8080/api/todos \\")
    print("       -H 'Content-Type: application/json' -d '{\"title\":\"New task\"}'")
    print("  curl -X DELETE 'http://localhost:8080/api/todos/item?id=3'")
    print(f"  curl http://localhost:8080/api/admin/stats -H 'Authorization: {ADMIN_TOKEN}'")
    print("  curl -i -X OPTIONS http://localhost:8080/api/status")

    server.run()


if __name__ == "__main__":
    main()
