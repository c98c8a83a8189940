"""Wiring of the store-backed services.

``build_services`` is the one place that turns settings into live objects;
the web application factory and the CLI both go through it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from curator.analytics import AnalyticsService
from curator.audit import AuditLogger
from curator.auth import AdminAuthenticator
from curator.blocklist import Blocklist, device_blocklist, ip_blocklist
from curator.broadcast import Broadcaster, ResendMailer
from curator.config import Settings
from curator.flags import FeatureFlags
from curator.generations.paginator import CursorPaginator
from curator.generations.scoring import ScoreBand, ScoreMutator
from curator.generations.service import GenerationService
from curator.moderation import (
    CreditLedger,
    IdentityProvider,
    MemoryIdentityProvider,
    UserDirectory,
    UserModerator,
    WarningService,
)
from curator.store import DocumentStore, create_store


@dataclass
class Services:
    settings: Settings
    store: DocumentStore
    audit: AuditLogger
    authenticator: AdminAuthenticator
    generations: GenerationService
    scores: ScoreMutator
    moderator: UserModerator
    credits: CreditLedger
    warnings: WarningService
    users: UserDirectory
    flags: FeatureFlags
    ips: Blocklist
    devices: Blocklist
    broadcaster: Broadcaster
    analytics: AnalyticsService

    async def close(self) -> None:
        await self.store.close()


def default_identity(settings: Settings) -> IdentityProvider:
    if settings.store_backend == "memory":
        return MemoryIdentityProvider()
    from curator.moderation.identity import FirebaseIdentityProvider
    from curator.store.firestore import init_firebase_app

    return FirebaseIdentityProvider(init_firebase_app(settings))


def build_services(
    settings: Settings,
    store: Optional[DocumentStore] = None,
    identity: Optional[IdentityProvider] = None,
    mailer: Optional[ResendMailer] = None,
) -> Services:
    store = store if store is not None else create_store(settings)
    identity = identity if identity is not None else default_identity(settings)
    mailer = mailer if mailer is not None else ResendMailer(
        settings.resend_api_key, settings.mail_from, settings.resend_api_base
    )
    audit = AuditLogger(store)
    paginator = CursorPaginator(store, batch_size=settings.batch_size, max_batches=settings.max_batches)
    ips = ip_blocklist(store, audit)
    return Services(
        settings=settings,
        store=store,
        audit=audit,
        authenticator=AdminAuthenticator(
            settings.admin_email, settings.admin_password, settings.jwt_secret, settings.token_ttl_hours
        ),
        generations=GenerationService(store, paginator, feed_min_score=settings.feed_min_score),
        scores=ScoreMutator(store, audit, ScoreBand(settings.score_min, settings.score_max)),
        moderator=UserModerator(store, identity, audit),
        credits=CreditLedger(store, audit),
        warnings=WarningService(store, audit),
        users=UserDirectory(store, ips),
        flags=FeatureFlags(store, audit),
        ips=ips,
        devices=device_blocklist(store, audit),
        broadcaster=Broadcaster(store, audit, mailer),
        analytics=AnalyticsService(store),
    )
