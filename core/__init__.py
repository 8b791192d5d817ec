"""
Feed mirror core package.

Modules
───────
models     — Pydantic data models (Item, CacheSnapshot)
errors     — error taxonomy (FetchError, NotAvailable, ConfigError, …)
fetcher    — upstream timeline retrieval (FeedFetcher, TwitterFetcher)
cache      — FeedCache: snapshot holder + background refresh loop
responses  — Request and the four Gemini response variants
router     — RequestRouter: path/query → response, page rendering
"""
