import asyncio

from foodrescue.core.logging import configure_logging
from foodrescue.deps import get_repo
from foodrescue.services.seed import seed_demo


async def main():
    configure_logging()
    repo = get_repo()
    await repo.ensure_indexes()
    try:
        result = await seed_demo(repo)
    finally:
        await repo.close()
    print(f"Seeded: {result['shelters']} shelters, {result['donations']} donations")

if __name__ == "__main__":
    asyncio.run(main())
