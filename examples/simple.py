from __future__ import annotations

import asyncio
from typing import Any

from lazytask import Task, all_of, of, rejected
from lazytask.runtime import after, to_future

USERS = {1: "ada", 2: "grace"}


def fetch_user(user_id: int) -> Task[str, str]:
    if user_id not in USERS:
        return rejected(f"no user {user_id}")
    return after(0.02, USERS[user_id])


def greeting(name: str) -> Task[str, Any]:
    return of(f"Hello, {name}!")


def greet_all(user_ids: list[int]) -> Task[list[str], str]:
    return all_of([fetch_user(uid).chain(greeting) for uid in user_ids])


async def main() -> None:
    print(await to_future(greet_all([1, 2])))

    fallback = greet_all([1, 3]).or_else(lambda error: of([f"fallback ({error})"]))
    print(await to_future(fallback))


if __name__ == "__main__":
    asyncio.run(main())
