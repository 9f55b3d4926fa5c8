"""GraphQL surface — SDL schema, resolvers, error formatting, ASGI wiring."""
