"""Adapters — one interceptor shape per kind of data call.

Each adapter turns its call site's native arguments into an identifier,
hands it to an ``Interceptor``, and builds the matching context:

    routes     route loaders and actions (request paths)
    query      query functions and mutations (tuple keys)
    swr        SWR-style fetchers and middleware (tuple keys)
    rpc        tRPC-style links (dot-notation procedure paths)
    transport  an ``httpx`` transport ("METHOD /path" keys)
"""
