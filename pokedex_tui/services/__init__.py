"""Services Layer — fetcher, sprite service, and the BrowserCore facade.

Invariants:
    - Every long-running call accepts a CancelToken
    - Results of cancelled calls never reach the cache or the event queue
"""
