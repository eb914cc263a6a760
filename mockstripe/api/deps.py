from typing import Any

from fastapi import BackgroundTasks, Depends, Header, Request

from mockstripe.db import Store, get_store
from mockstripe.services.common import decode_body, decode_form


def get_account_id(
    request: Request, stripe_account: str | None = Header(default=None)
) -> str:
    """The partition a request works in, from the Stripe-Account header."""
    return stripe_account or request.app.state.settings.default_account_id


async def get_body_params(request: Request) -> dict[str, Any]:
    return decode_body(await request.body(), request.headers.get("content-type"))


def get_query_params(request: Request) -> dict[str, Any]:
    return decode_form(request.query_params.multi_items())


def get_censored_key(request: Request) -> str:
    return getattr(request.state, "censored_key", "")


def run_deferred(
    background_tasks: BackgroundTasks, store: Store = Depends(get_store)
) -> BackgroundTasks:
    """Drain side effects queued by the services once the response is sent."""
    background_tasks.add_task(store.deferred.run_pending)
    return background_tasks
