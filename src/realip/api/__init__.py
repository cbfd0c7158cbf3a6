"""HTTP surface: routes, admin gate, client-address middleware."""
