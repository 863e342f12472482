# foodrescue/deps.py
from functools import lru_cache

from fastapi import Depends

from .core.config import get_settings
from .core.locks import KeyedLock
from .services.donations import DonationRegistry
from .services.matching import MatchCoordinator
from .services.notify import NotificationDispatcher, SmsSender
from .services.shelters import ShelterRegistry


@lru_cache(maxsize=1)
def _repo_singleton():
    settings = get_settings()
    if settings.store_backend == "mongo":
        from motor.motor_asyncio import AsyncIOMotorClient
        from .repos.mongo import MongoRepo
        client = AsyncIOMotorClient(settings.mongo_uri, uuidRepresentation="standard")
        return MongoRepo(client[settings.mongo_db], client=client)
    from .repos.inmemory import InMemoryRepo
    return InMemoryRepo()


def get_repo():
    return _repo_singleton()


@lru_cache(maxsize=1)
def get_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(SmsSender(get_settings()))


@lru_cache(maxsize=1)
def get_claim_locks() -> KeyedLock:
    # must be shared by every request, otherwise claims are not serialised
    return KeyedLock()


def get_donations(repo=Depends(get_repo)) -> DonationRegistry:
    return DonationRegistry(repo)


def get_shelters(repo=Depends(get_repo)) -> ShelterRegistry:
    return ShelterRegistry(repo)


def get_coordinator(
    repo=Depends(get_repo),
    donations: DonationRegistry = Depends(get_donations),
    shelters: ShelterRegistry = Depends(get_shelters),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    locks: KeyedLock = Depends(get_claim_locks),
) -> MatchCoordinator:
    return MatchCoordinator(
        repo, donations, shelters, locks,
        notifier=dispatcher,
        reject_expired=get_settings().reject_expired_claims,
    )
