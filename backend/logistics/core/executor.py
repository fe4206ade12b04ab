# logistics/core/executor.py
import asyncio


async def run_blocking(func, *args, **kwargs):
    # firebase_admin.auth is blocking
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, lambda: func(*args, **kwargs))
