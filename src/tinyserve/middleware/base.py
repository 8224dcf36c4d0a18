"""
=============================================================================
BASE MIDDLEWARE INTERFACE
=============================================================================

Defines the middleware protocol and the pipeline that runs it.

=============================================================================
BOOLEAN CONTINUATION
=============================================================================

A middleware is any callable taking (request, response) and returning a
truth value. It works on the shared response object directly instead of
wrapping a "next" handler:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                  MIDDLEWARE - REQUEST FLOW                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   request, response                                                  │
    │        │                                                             │
    │        ▼                                                             │
    │   ┌──────────┐ True ┌──────────┐ True ┌──────────┐ True ┌────────┐  │
    │   │ Request  │─────►│   CORS   │─────►│  Cache   │─────►│ Route  │  │
    │   │    ID    │      │          │      │ Control  │      │ /static│  │
    │   └──────────┘      └────┬─────┘      └──────────┘      └────────┘  │
    │                          │                                           │
    │                          │ False (OPTIONS preflight)                 │
    │                          ▼                                           │
    │                   response is sent exactly as CORS left it;          │
    │                   Cache Control and routing never run                │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Middleware run strictly in registration order, once each, all BEFORE the
route handler. There is no "after" phase: a middleware that wants a
header on the final response just sets it now, and the handler usually
leaves it alone.

A middleware that stops the chain without touching the status sends a
200 with whatever body and headers it set. That is intentional: the
response object starts out as 200 OK.

=============================================================================
INTERVIEW INSIGHT: CALLBACKS VS WRAPPERS
=============================================================================

Q: "Why return a bool instead of calling next()?"
A: "With only a 'before' phase, a flag is all the pipeline needs. There's
   no stack of nested closures, short-circuiting is just 'return False',
   and a plain two-argument function is already valid middleware."

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Union
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


# =============================================================================
# TYPE ALIAS
# =============================================================================

# Returns truthy to continue the chain, falsy to stop it
MiddlewareFunc = Callable[[HTTPRequest, HTTPResponse], bool]


class Middleware(ABC):
    """
    Abstract base class for class-based middleware.

    =========================================================================
    MIDDLEWARE ANATOMY
    =========================================================================

        class RequireToken(Middleware):
            def __init__(self, token):
                self.token = token

            def __call__(self, request, response):
                if request.get_header("Authorization") == f"Bearer {self.token}":
                    return True                    # continue

                response.json({"error": "Unauthorized"}, status=401)
                return False                       # short-circuit

    =========================================================================
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, response: HTTPResponse) -> bool:
        """
        Inspect the request and/or modify the response.

        Returns:
            True to continue with the next middleware (and eventually the
            route), False to send the response as it stands.
        """

    @property
    def name(self) -> str:
        """Get the middleware name for logging."""
        return self.__class__.__name__


class FunctionMiddleware(Middleware):
    """
    Wraps a plain function as middleware.

    The pipeline does this automatically for anything that isn't already a
    Middleware, so user code rarely builds one by hand:

        def add_header(request, response):
            response.set_header("X-Custom", "value")
            return True

        server.add_middleware(add_header)
    """

    def __init__(self, func: MiddlewareFunc, name: Optional[str] = None):
        self._func = func
        self._name = name or getattr(func, "__name__", repr(func))

    def __call__(self, request: HTTPRequest, response: HTTPResponse) -> bool:
        return self._func(request, response)

    @property
    def name(self) -> str:
        return self._name


class MiddlewarePipeline:
    """
    Ordered list of middleware, run before routing.

    =========================================================================
    USAGE
    =========================================================================

        pipeline = MiddlewarePipeline()
        pipeline.add(RequestIdMiddleware())
        pipeline.add(CORSMiddleware())

        if pipeline.run(request, response):
            ...  # every middleware said continue: route the request
        else:
            ...  # someone short-circuited: send response as is

    =========================================================================
    """

    def __init__(self):
        self._middleware: List[Middleware] = []
        self._frozen = False

    def add(self, middleware: Union[Middleware, MiddlewareFunc]) -> "MiddlewarePipeline":
        """
        Append middleware. Registration order is execution order.

        Args:
            middleware: A Middleware instance or a plain
                        (request, response) -> bool callable.

        Returns:
            Self for method chaining

        Raises:
            RuntimeError: The pipeline was frozen because serving started.
        """
        if self._frozen:
            raise RuntimeError("Cannot add middleware: pipeline is frozen")

        if not isinstance(middleware, Middleware):
            middleware = FunctionMiddleware(middleware)

        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def run(self, request: HTTPRequest, response: HTTPResponse) -> bool:
        """
        Run every middleware in order until one returns a falsy value.

        Exceptions propagate to the caller; the dispatcher turns them into
        a 500 page.

        Returns:
            True if all middleware continued, False on the first stop.
        """
        for middleware in self._middleware:
            if not middleware(request, response):
                logger.debug(f"Middleware {middleware.name} stopped the chain")
                return False
        return True

    def freeze(self) -> None:
        """Reject further additions."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __len__(self) -> int:
        """Get the number of middleware in the pipeline."""
        return len(self._middleware)

    def __iter__(self):
        """Iterate over middleware."""
        return iter(self._middleware)
