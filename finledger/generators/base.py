"""Base generator class for sample ledger data."""

from __future__ import annotations

import random
from abc import ABC

from faker import Faker


class BaseGenerator(ABC):
    """Base class for all sample data generators.

    Provides a Faker instance and seed-based reproducibility. Generators
    return keyword arguments for the service ``create_*`` calls rather than
    entities, so seeded data passes through the same validation as user
    input.

    Parameters
    ----------
    seed : int | None
        Random seed for reproducibility.
    locale : str
        Faker locale (default ``es_CO``).
    """

    def __init__(self, seed: int | None = None, locale: str = "es_CO") -> None:
        self.fake = Faker(locale)
        self.random = random.Random(seed)
        if seed is not None:
            self.fake.seed_instance(seed)
