"""RouteGuard: consumer access lists kept as force routing rules."""
