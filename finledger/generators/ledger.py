"""Generators for wallets, pockets, credit cards and categories."""

from decimal import Decimal
from typing import Any, Iterator

from finledger.generators.base import BaseGenerator
from finledger.models.ledger import CategoryType, InterestFrequency


class WalletGenerator(BaseGenerator):
    """Generate wallet creation inputs.

    About a third of the wallets are savings accounts that pay interest.
    """

    BANKS = ["Bancolombia", "Davivienda", "Nequi", "Banco de Bogotá", "BBVA", "Nu", "Lulo Bank"]
    KINDS = ["Ahorros", "Corriente", "Nómina"]
    PAYOUTS = [InterestFrequency.DAILY, InterestFrequency.MONTHLY]

    def generate(self) -> dict[str, Any]:
        pays_interest = self.random.random() < 0.35
        balance = Decimal(self.random.randrange(0, 20_000_000, 1000))
        return {
            "name": f"{self.random.choice(self.BANKS)} {self.random.choice(self.KINDS)}",
            "balance_available": balance,
            "interest_rate": Decimal(str(round(self.random.uniform(1, 12), 2))) if pays_interest else Decimal("0"),
            "interest_payment_frequency": (
                self.random.choice(self.PAYOUTS).value if pays_interest else None
            ),
        }


class PocketGenerator(BaseGenerator):
    """Generate pocket names."""

    NAMES = ["Emergencias", "Viajes", "Arriendo", "Regalos", "Estudio", "Salud", "Mascotas", "Carro"]

    def generate(self) -> dict[str, Any]:
        return {"name": self.random.choice(self.NAMES)}

    def generate_batch(self, count: int) -> Iterator[dict[str, Any]]:
        """Distinct pocket names, at most ``len(NAMES)``."""
        for name in self.random.sample(self.NAMES, k=min(count, len(self.NAMES))):
            yield {"name": name}


class CreditCardGenerator(BaseGenerator):
    """Generate credit card creation inputs."""

    BRANDS = ["Visa", "Mastercard", "Amex"]
    BRAND_WEIGHTS = [0.45, 0.45, 0.10]

    def generate(self, cashback_destination_account_id: str | None = None) -> dict[str, Any]:
        brand = self.random.choices(self.BRANDS, weights=self.BRAND_WEIGHTS, k=1)[0]
        credit_limit = Decimal(self.random.randrange(500_000, 30_000_000, 100_000))
        return {
            "name": f"{brand} {self.fake.last_name()}"[:50],
            "credit_limit": credit_limit,
            "cashback_percentage": Decimal(self.random.choice(["0", "0.5", "1", "1.5", "2"])),
            "cashback_destination_account_id": cashback_destination_account_id,
        }

    def generate_purchases(self, credit_limit: Decimal, count: int) -> Iterator[Decimal]:
        """Purchase amounts that together stay within ``credit_limit``."""
        remaining = credit_limit
        for _ in range(count):
            if remaining < 1000:
                return
            amount = Decimal(self.random.randrange(1000, int(min(remaining, 2_000_000)) + 1, 100))
            remaining -= amount
            yield amount


class CategoryGenerator(BaseGenerator):
    """Generate a parent category and child names under it."""

    TAXONOMY = {
        "Hogar": ["Arriendo", "Servicios", "Mercado"],
        "Transporte": ["Gasolina", "Taxi", "Parqueadero"],
        "Ocio": ["Restaurantes", "Cine", "Viajes"],
        "Salud": ["Medicina", "Gimnasio"],
        "Ingresos": ["Salario", "Intereses"],
    }

    def generate_parents(self) -> Iterator[dict[str, Any]]:
        for name in self.TAXONOMY:
            yield {
                "category_type": CategoryType.PARENT,
                "name": name,
                "color": self.fake.hex_color(),
            }

    def generate_children(self, parent_name: str, parent_id: str) -> Iterator[dict[str, Any]]:
        for name in self.TAXONOMY.get(parent_name, []):
            yield {"category_type": CategoryType.CHILD, "name": name, "parent_id": parent_id}
