"""Domain layer (pure logic).

- Keep energy, progress and level rules here.
- Avoid I/O: no DB sessions, no HTTP/FastAPI, no Redis.
- Time is passed in as an argument; nothing here reads the clock.
"""
