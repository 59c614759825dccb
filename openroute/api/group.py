"""Route groups: a prefix plus defaults inherited by every route in it.

A group does not own its routes. Registering through a group merges the
group's tags, security requirements and middleware into the route
configuration once, ahead of the route's own values, and hands the route to
the wrapper. Groups nest; a nested group starts from its parent's defaults.
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from openroute.api.middleware.validation import Handler, Middleware
from openroute.api.paths import join_paths
from openroute.api.route import RouteWrapper
from openroute.core.types import SecurityRequirement

if TYPE_CHECKING:
    from openroute.api.wrapper import ApiWrapper


class RouteRegistrar:
    """Method shortcuts over ``add``."""

    def add(
        self, method: str, path: str, handler: Handler, **config: Any  # noqa: ANN401
    ) -> RouteWrapper:
        """Register a route; see ``ApiWrapper.add``."""
        raise NotImplementedError

    def get(self, path: str, handler: Handler, **config: Any) -> RouteWrapper:  # noqa: ANN401
        """Register a GET route."""
        return self.add("GET", path, handler, **config)

    def put(self, path: str, handler: Handler, **config: Any) -> RouteWrapper:  # noqa: ANN401
        """Register a PUT route."""
        return self.add("PUT", path, handler, **config)

    def post(self, path: str, handler: Handler, **config: Any) -> RouteWrapper:  # noqa: ANN401
        """Register a POST route."""
        return self.add("POST", path, handler, **config)

    def delete(self, path: str, handler: Handler, **config: Any) -> RouteWrapper:  # noqa: ANN401
        """Register a DELETE route."""
        return self.add("DELETE", path, handler, **config)

    def options(self, path: str, handler: Handler, **config: Any) -> RouteWrapper:  # noqa: ANN401
        """Register an OPTIONS route."""
        return self.add("OPTIONS", path, handler, **config)

    def head(self, path: str, handler: Handler, **config: Any) -> RouteWrapper:  # noqa: ANN401
        """Register a HEAD route."""
        return self.add("HEAD", path, handler, **config)

    def patch(self, path: str, handler: Handler, **config: Any) -> RouteWrapper:  # noqa: ANN401
        """Register a PATCH route."""
        return self.add("PATCH", path, handler, **config)

    def trace(self, path: str, handler: Handler, **config: Any) -> RouteWrapper:  # noqa: ANN401
        """Register a TRACE route."""
        return self.add("TRACE", path, handler, **config)


class GroupWrapper(RouteRegistrar):
    """A prefix and the defaults its routes inherit.

    Args:
        api: The wrapper routes are registered with.
        prefix: Path prefix, in router syntax.
        tags: Tags added to every route.
        security: Security requirements added ahead of each route's own.
        middleware: Middleware run ahead of each route's own.
    """

    def __init__(
        self,
        api: "ApiWrapper",
        prefix: str,
        tags: Sequence[str] = (),
        security: Sequence[SecurityRequirement] = (),
        middleware: Sequence[Middleware] = (),
    ) -> None:
        self.api = api
        self.prefix = prefix
        self.tags = list(tags)
        self.security = list(security)
        self.middleware = list(middleware)

    def add(
        self, method: str, path: str, handler: Handler, **config: Any  # noqa: ANN401
    ) -> RouteWrapper:
        """Register a route under the group prefix with the group defaults."""
        return self.api.register(
            method, join_paths(self.prefix, path), handler, config, group=self
        )

    def group(
        self,
        prefix: str,
        *,
        tags: Sequence[str] = (),
        security: Sequence[SecurityRequirement] = (),
        middleware: Sequence[Middleware] = (),
    ) -> "GroupWrapper":
        """Create a nested group inheriting this group's defaults."""
        return GroupWrapper(
            self.api,
            join_paths(self.prefix, prefix),
            tags=[*self.tags, *tags],
            security=[*self.security, *security],
            middleware=[*self.middleware, *middleware],
        )
