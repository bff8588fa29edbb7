"""HTTP layer: routes, controllers, dependencies and middleware."""
