"""
Request-scoped dependencies for FastAPI.

The fare calculator is owned by the application (app.state) so tests and
deployments can swap its predicates or location classifier without
touching the routes.
"""

from typing import Optional
from fastapi import Header, Request
from pricing_backend.app.domain.pricing.fare_calculator import FareCalculator


def get_fare_calculator(request: Request) -> FareCalculator:
    """Return the application's FareCalculator, creating the default one on first use."""
    calculator = getattr(request.app.state, "fare_calculator", None)
    if calculator is None:
        calculator = FareCalculator()
        request.app.state.fare_calculator = calculator
    return calculator


async def get_actor(x_actor_id: Optional[str] = Header(None, alias="X-Actor-ID")) -> Optional[str]:
    """
    Identifier recorded in the audit log for admin writes.

    Authentication happens upstream; this only reads what the gateway forwards.
    """
    return x_actor_id
