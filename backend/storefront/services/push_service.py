# Overview: Push token registry and provider dispatch (Expo, FCM over HTTP; APNs registered but unsupported).

"""
Push delivery

Tokens are registered per device and grouped by provider at send time:
    {"expo": [...], "fcm": [...], "apns": [...]}

PushDispatcher.send_to_grouped_tokens hands each group to its provider.
A provider failure (HTTP error, timeout) is logged and does not stop the
remaining providers. Missing credentials skip the provider with a warning.

Nothing in this module raises into order flows; notification_service is the
boundary that guarantees that.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

import httpx
from flask import current_app

from storefront.extensions import db
from storefront.errors import ValidationFailure
from storefront.models import PushToken
from storefront.models.notifications import (
    PUSH_PROVIDER_APNS,
    PUSH_PROVIDER_EXPO,
    PUSH_PROVIDER_FCM,
    PUSH_PROVIDERS,
)
from storefront.time_utils import utcnow


EXTENSION_KEY = "storefront.push"

FCM_BATCH_SIZE = 1000


@dataclass(frozen=True)
class PushMessage:
    title: str
    body: str
    data: dict = field(default_factory=dict)
    sound: str = "default"


def format_cents(cents: int, symbol: str = "R$") -> str:
    """12345 -> 'R$ 123,45' (dot thousands, comma decimals)."""
    sign = "-" if cents < 0 else ""
    whole, frac = divmod(abs(cents), 100)
    whole_str = f"{whole:,}".replace(",", ".")
    return f"{symbol} {sign}{whole_str},{frac:02d}"


# --- Token registry ---------------------------------------------------------

def register_push_token(
    *,
    user_id: str,
    store_id: str,
    token: str,
    provider: str,
    device_id: str | None = None,
    device_name: str | None = None,
) -> PushToken:
    """Register a device token, or reactivate and reassign it if already known."""
    if not token or not token.strip():
        raise ValidationFailure("token is required", {"field": "token"})
    if provider not in PUSH_PROVIDERS:
        raise ValidationFailure(
            f"provider must be one of {', '.join(PUSH_PROVIDERS)}",
            {"field": "provider"},
        )

    token = token.strip()
    push_token = db.session.query(PushToken).filter_by(token=token).first()
    if push_token is None:
        push_token = PushToken(token=token)
        db.session.add(push_token)

    push_token.provider = provider
    push_token.user_id = user_id
    push_token.store_id = store_id
    push_token.device_id = device_id
    push_token.device_name = device_name
    push_token.is_active = True

    db.session.commit()
    return push_token


def deactivate_push_token(token: str) -> bool:
    push_token = db.session.query(PushToken).filter_by(token=token).first()
    if not push_token:
        return False
    push_token.is_active = False
    db.session.commit()
    return True


def delete_push_token(token: str) -> bool:
    push_token = db.session.query(PushToken).filter_by(token=token).first()
    if not push_token:
        return False
    db.session.delete(push_token)
    db.session.commit()
    return True


def _group_by_provider(tokens: Iterable[PushToken]) -> dict[str, list[str]]:
    grouped: dict[str, list[str]] = {provider: [] for provider in PUSH_PROVIDERS}
    for push_token in tokens:
        if push_token.provider in grouped:
            grouped[push_token.provider].append(push_token.token)
    return grouped


def tokens_for_store(store_id: str) -> dict[str, list[str]]:
    tokens = db.session.query(PushToken).filter_by(store_id=store_id, is_active=True).all()
    return _group_by_provider(tokens)


def tokens_for_owner(user_id: str, store_id: str) -> dict[str, list[str]]:
    tokens = (
        db.session.query(PushToken)
        .filter_by(user_id=user_id, store_id=store_id, is_active=True)
        .all()
    )
    return _group_by_provider(tokens)


def mark_tokens_used(tokens: Iterable[str]) -> None:
    tokens = list(tokens)
    if not tokens:
        return
    now = utcnow()
    for push_token in db.session.query(PushToken).filter(PushToken.token.in_(tokens)).all():
        push_token.last_used_at = now
    db.session.commit()


# --- Providers --------------------------------------------------------------

class PushProvider:
    name = ""

    def send(self, tokens: list[str], message: PushMessage) -> int:
        """Deliver message to tokens; return how many were handed to the provider."""
        raise NotImplementedError


class ExpoPushProvider(PushProvider):
    name = PUSH_PROVIDER_EXPO

    def __init__(self, access_token: str, url: str, timeout: float = 10.0, transport=None):
        self.access_token = access_token
        self.url = url
        self.timeout = timeout
        self.transport = transport

    def send(self, tokens: list[str], message: PushMessage) -> int:
        if not tokens:
            return 0
        if not self.access_token:
            current_app.logger.warning("EXPO_ACCESS_TOKEN not configured; skipping %d push(es)", len(tokens))
            return 0

        payload = [
            {
                "to": token,
                "sound": message.sound,
                "title": message.title,
                "body": message.body,
                "data": message.data,
            }
            for token in tokens
        ]
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.access_token}",
        }
        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            response = client.post(self.url, json=payload, headers=headers)
            response.raise_for_status()

        current_app.logger.info("Sent %d Expo push notification(s)", len(tokens))
        return len(tokens)


class FcmPushProvider(PushProvider):
    name = PUSH_PROVIDER_FCM

    def __init__(self, server_key: str, url: str, timeout: float = 10.0, transport=None):
        self.server_key = server_key
        self.url = url
        self.timeout = timeout
        self.transport = transport

    def send(self, tokens: list[str], message: PushMessage) -> int:
        if not tokens:
            return 0
        if not self.server_key:
            current_app.logger.warning("FCM_SERVER_KEY not configured; skipping %d push(es)", len(tokens))
            return 0

        headers = {
            "Authorization": f"key={self.server_key}",
            "Content-Type": "application/json",
        }
        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            for start in range(0, len(tokens), FCM_BATCH_SIZE):
                batch = tokens[start:start + FCM_BATCH_SIZE]
                response = client.post(
                    self.url,
                    json={
                        "registration_ids": batch,
                        "notification": {
                            "title": message.title,
                            "body": message.body,
                            "sound": message.sound,
                        },
                        "data": message.data,
                    },
                    headers=headers,
                )
                response.raise_for_status()

        current_app.logger.info("Sent %d FCM push notification(s)", len(tokens))
        return len(tokens)


class ApnsPushProvider(PushProvider):
    """Accepted at registration; delivery is not implemented."""
    name = PUSH_PROVIDER_APNS

    def send(self, tokens: list[str], message: PushMessage) -> int:
        if tokens:
            current_app.logger.warning("APNs delivery not supported; skipping %d push(es)", len(tokens))
        return 0


class PushDispatcher:
    def __init__(self, providers: Mapping[str, PushProvider]):
        self.providers = dict(providers)

    def send_to_grouped_tokens(self, tokens_by_provider: Mapping[str, list[str]], message: PushMessage) -> dict[str, int]:
        sent: dict[str, int] = {}
        for provider_name, tokens in tokens_by_provider.items():
            if not tokens:
                continue
            provider = self.providers.get(provider_name)
            if provider is None:
                current_app.logger.warning("No push provider registered for %r", provider_name)
                continue
            try:
                sent[provider_name] = provider.send(list(tokens), message)
            except httpx.HTTPError:
                current_app.logger.exception("Push delivery via %s failed", provider_name)
                sent[provider_name] = 0
        return sent


def build_dispatcher(config: Mapping, transport=None) -> PushDispatcher:
    timeout = float(config.get("PUSH_TIMEOUT_SECONDS", 10))
    return PushDispatcher({
        PUSH_PROVIDER_EXPO: ExpoPushProvider(
            config.get("EXPO_ACCESS_TOKEN", ""),
            config.get("EXPO_PUSH_URL", "https://exp.host/--/api/v2/push/send"),
            timeout=timeout,
            transport=transport,
        ),
        PUSH_PROVIDER_FCM: FcmPushProvider(
            config.get("FCM_SERVER_KEY", ""),
            config.get("FCM_PUSH_URL", "https://fcm.googleapis.com/fcm/send"),
            timeout=timeout,
            transport=transport,
        ),
        PUSH_PROVIDER_APNS: ApnsPushProvider(),
    })


def get_dispatcher() -> PushDispatcher:
    return current_app.extensions[EXTENSION_KEY]
