from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from app.db.models.coupons import Coupon
from app.db.models.tournaments import Tournament
from app.db.repo.coupons_repo import CouponsRepo
from app.db.repo.tournaments_repo import TournamentsRepo
from app.db.repo.users_repo import UsersRepo
from app.db.session import SessionLocal
from app.economy.wallet.constants import TransactionKind
from app.economy.wallet.service import WalletService

UTC = timezone.utc
CURRENCY = "INR"


def game_id_for(seed: int) -> str:
    return f"{5_000_000_000 + seed}"


async def create_user(seed: int, *, role: str = "user") -> int:
    async with SessionLocal.begin() as session:
        user = await UsersRepo.create(
            session,
            display_name=f"Player {seed}",
            game_id=game_id_for(seed),
            in_game_name=f"IGN{seed}",
            role=role,
        )
        return user.id


async def create_tournament(
    *,
    now_utc: datetime,
    service_fee: Decimal = Decimal("200"),
    max_participants: int = 10,
    is_free: bool = False,
    tournament_format: str = "solo",
    team_size: int = 1,
) -> UUID:
    tournament = Tournament(
        id=uuid4(),
        title="Weekend Clash",
        format=tournament_format,
        team_size=team_size,
        max_participants=max_participants,
        current_participants=0,
        registration_count=0,
        registration_start=now_utc - timedelta(days=1),
        registration_end=now_utc + timedelta(days=1),
        tournament_start=now_utc + timedelta(days=2),
        is_free=is_free,
        service_fee=service_fee,
        prize_pool=Decimal("1000"),
        status="registration_open",
        version=0,
        created_at=now_utc,
    )
    async with SessionLocal.begin() as session:
        await TournamentsRepo.create(session, tournament=tournament)
    return tournament.id


async def create_coupon(
    *,
    coupon_id: int,
    code: str,
    discount_type: str,
    discount_value: Decimal,
    now_utc: datetime,
    max_uses: int | None = None,
    max_uses_per_user: int | None = 1,
) -> int:
    async with SessionLocal.begin() as session:
        coupon = await CouponsRepo.create(
            session,
            coupon=Coupon(
                id=coupon_id,
                code=code,
                discount_type=discount_type,
                discount_value=discount_value,
                applicable_tournament_ids=[],
                allowed_user_ids=[],
                allowed_game_ids=[],
                min_order_amount=Decimal("0"),
                max_uses=max_uses,
                max_uses_per_user=max_uses_per_user,
                used_count=0,
                is_active=True,
                created_at=now_utc,
            ),
        )
        return coupon.id


async def fund_wallet(user_id: int, amount: Decimal, *, now_utc: datetime) -> None:
    async with SessionLocal.begin() as session:
        await WalletService.credit(
            session,
            user_id=user_id,
            amount=amount,
            kind=TransactionKind.DEPOSIT,
            description="Integration deposit",
            idempotency_key=f"deposit:{user_id}:{uuid4().hex}",
            now_utc=now_utc,
        )
