# Overview: Builds the component graph and hands it to the Flask app.

"""
Service container

Every component receives its collaborators through its constructor, so
there is no module-level connection or singleton: an app gets its own
container, and tests can build one against any SQLAlchemy session.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from .auth_service import CredentialStore
from .inventory_service import InventoryLedger
from .sales_service import SaleProcessor
from .session_service import SessionAuthority


EXTENSION_KEY = "webpos"


@dataclass
class PosServices:
    credentials: CredentialStore
    authority: SessionAuthority
    ledger: InventoryLedger
    sales: SaleProcessor


def build_services(
    session,
    *,
    signing_secret: str,
    token_ttl: timedelta = timedelta(hours=12),
    bcrypt_rounds: int = 12,
    allow_backorder: bool = False,
    strict_totals: bool = True,
) -> PosServices:
    credentials = CredentialStore(session, bcrypt_rounds=bcrypt_rounds)
    ledger = InventoryLedger(session)
    return PosServices(
        credentials=credentials,
        authority=SessionAuthority(credentials, signing_secret, ttl=token_ttl),
        ledger=ledger,
        sales=SaleProcessor(
            session,
            ledger,
            allow_backorder=allow_backorder,
            strict_totals=strict_totals,
        ),
    )


def init_services(app, session) -> PosServices:
    """Build services from app.config and register them on the app."""
    services = build_services(
        session,
        signing_secret=app.config["SIGNING_SECRET"],
        token_ttl=timedelta(hours=int(app.config["TOKEN_TTL_HOURS"])),
        bcrypt_rounds=int(app.config["BCRYPT_ROUNDS"]),
        allow_backorder=bool(app.config["ALLOW_BACKORDER"]),
        strict_totals=bool(app.config["STRICT_TOTALS"]),
    )
    app.extensions[EXTENSION_KEY] = services
    return services


def get_services() -> PosServices:
    return current_app.extensions[EXTENSION_KEY]
