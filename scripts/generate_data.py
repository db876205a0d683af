"""
Synthetic dataset generator for the database showdown.

Writes users, cards and transactions CSV files with the same columns and
value formatting as the public credit-card transactions dataset the loader
is built for (currency strings like "$-77.00", "YES"/"NO" chip flags,
"Chip Transaction"/"Swipe Transaction" usage). Output is deterministic for a
given seed.
"""

from __future__ import annotations

import csv
import random
import sys
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict

import typer

app = typer.Typer(help="Generate synthetic users/cards/transactions CSV files.")

USER_COLUMNS = [
    "id",
    "current_age",
    "retirement_age",
    "birth_year",
    "birth_month",
    "gender",
    "address",
    "latitude",
    "longitude",
    "per_capita_income",
    "yearly_income",
    "total_debt",
    "credit_score",
    "num_credit_cards",
]
CARD_COLUMNS = [
    "id",
    "client_id",
    "card_brand",
    "card_type",
    "card_number",
    "expires",
    "cvv",
    "has_chip",
    "num_cards_issued",
    "credit_limit",
    "acct_open_date",
    "year_pin_last_changed",
    "card_on_dark_web",
]
TRANSACTION_COLUMNS = [
    "id",
    "date",
    "client_id",
    "card_id",
    "amount",
    "use_chip",
    "merchant_id",
    "merchant_city",
    "merchant_state",
    "zip",
    "mcc",
    "errors",
]

_CITIES = [
    ("San Diego", "CA", "92101"),
    ("San Antonio", "TX", "78205"),
    ("Houston", "TX", "77002"),
    ("Chicago", "IL", "60601"),
    ("Seattle", "WA", "98101"),
    ("Miami", "FL", "33101"),
]
_STREETS = ["Oak Street", "Maple Avenue", "Pine Lane", "Cedar Drive", "Elm Court"]
_BRANDS = ["Visa", "Mastercard", "Amex", "Discover"]
_CARD_TYPES = ["Debit", "Credit", "Debit (Prepaid)"]
_USE_CHIP = ["Chip Transaction", "Swipe Transaction", "Online Transaction"]
_MCCS = ["5411", "5499", "5812", "5912", "4829", "5311"]


def _money(value: float) -> str:
    return f"${value:.2f}" if value % 1 else f"${int(value)}"


def _generate_users_csv(path: Path, rows: int, rng: random.Random) -> None:
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(USER_COLUMNS)
        for user_id in range(rows):
            age = rng.randint(18, 90)
            income = rng.randint(8_000, 80_000)
            writer.writerow(
                [
                    user_id,
                    age,
                    rng.randint(60, 70),
                    2020 - age,
                    rng.randint(1, 12),
                    rng.choice(["Male", "Female"]),
                    f"{rng.randint(1, 9999)} {rng.choice(_STREETS)}",
                    f"{rng.uniform(25, 48):.2f}",
                    f"{rng.uniform(-122, -71):.2f}",
                    _money(income),
                    _money(income * 2),
                    _money(rng.randint(0, 150_000)),
                    rng.randint(480, 850),
                    rng.randint(1, 6),
                ]
            )


def _generate_cards_csv(path: Path, users: int, cards_per_user: int, rng: random.Random) -> int:
    card_id = 0
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(CARD_COLUMNS)
        for client_id in range(users):
            for _ in range(cards_per_user):
                writer.writerow(
                    [
                        card_id,
                        client_id,
                        rng.choice(_BRANDS),
                        rng.choice(_CARD_TYPES),
                        "".join(str(rng.randint(0, 9)) for _ in range(16)),
                        f"{rng.randint(1, 12):02d}/{rng.randint(2024, 2030)}",
                        f"{rng.randint(0, 999):03d}",
                        rng.choice(["YES", "NO"]),
                        rng.randint(1, 3),
                        _money(rng.randint(500, 30_000)),
                        f"{rng.randint(1, 12):02d}/{rng.randint(2000, 2019)}",
                        rng.randint(2008, 2020),
                        "No",
                    ]
                )
                card_id += 1
    return card_id


def _generate_transactions_csv(
    path: Path, rows: int, users: int, cards_per_user: int, rng: random.Random
) -> None:
    start = datetime(2010, 1, 1)
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(TRANSACTION_COLUMNS)
        for txn_id in range(rows):
            client_id = rng.randrange(users)
            card_id = client_id * cards_per_user + rng.randrange(cards_per_user)
            city, state, zip_code = rng.choice(_CITIES)
            amount = round(rng.uniform(-100, 1_500), 2)
            writer.writerow(
                [
                    7_475_327 + txn_id,
                    (start + timedelta(minutes=txn_id)).strftime("%Y-%m-%d %H:%M:%S"),
                    client_id,
                    card_id,
                    f"${amount:,.2f}",
                    rng.choice(_USE_CHIP),
                    rng.randint(1_000, 99_999),
                    city,
                    state,
                    zip_code,
                    rng.choice(_MCCS),
                    "",
                ]
            )


def generate_dataset(
    output_dir: Path,
    users: int = 100,
    cards_per_user: int = 2,
    transactions: int = 1_000,
    seed: int = 42,
) -> Dict[str, Path]:
    """Write the three CSV files into `output_dir` and return their paths."""
    if users <= 0 or cards_per_user <= 0:
        raise ValueError("users and cards_per_user must be positive")
    rng = random.Random(seed)
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = {
        "users": output_dir / "users_data.csv",
        "cards": output_dir / "cards_data.csv",
        "transactions": output_dir / "transactions_data.csv",
    }
    _generate_users_csv(paths["users"], users, rng)
    _generate_cards_csv(paths["cards"], users, cards_per_user, rng)
    _generate_transactions_csv(paths["transactions"], transactions, users, cards_per_user, rng)
    return paths


@app.command()
def main(
    output: Path = typer.Option(
        Path("data"), "--output", "-o", help="Directory to write the CSV files into."
    ),
    users: int = typer.Option(2_000, "--users", "-u", min=1, help="Number of users."),
    cards_per_user: int = typer.Option(3, "--cards-per-user", "-c", min=1),
    transactions: int = typer.Option(
        100_000, "--transactions", "-t", min=0, help="Number of transactions."
    ),
    seed: int = typer.Option(42, "--seed", help="Deterministic RNG seed."),
) -> None:
    """
    Generate a synthetic dataset the loader can ingest.
    """
    start = time.perf_counter()
    typer.echo(
        f"Generating {users:,} users, {users * cards_per_user:,} cards, "
        f"{transactions:,} transactions -> {output} (seed={seed})"
    )
    generate_dataset(output, users, cards_per_user, transactions, seed)
    typer.echo(f"Done in {time.perf_counter() - start:.2f}s")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
