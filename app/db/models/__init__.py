from app.db.models.coupons import Coupon, CouponUsage
from app.db.models.payment_refunds import PaymentRefund
from app.db.models.payments import Payment
from app.db.models.reconciliation_runs import ReconciliationRun
from app.db.models.tournament_participants import TournamentParticipant
from app.db.models.tournament_roster_game_ids import TournamentRosterGameId
from app.db.models.tournament_teams import TournamentTeam, TournamentTeamMember
from app.db.models.tournament_winners import TournamentWinner
from app.db.models.tournaments import Tournament
from app.db.models.users import User
from app.db.models.wallet_transactions import WalletTransaction
from app.db.models.wallet_withdrawals import WalletWithdrawal
from app.db.models.wallets import Wallet

__all__ = [
    "Coupon",
    "CouponUsage",
    "Payment",
    "PaymentRefund",
    "ReconciliationRun",
    "Tournament",
    "TournamentParticipant",
    "TournamentRosterGameId",
    "TournamentTeam",
    "TournamentTeamMember",
    "TournamentWinner",
    "User",
    "Wallet",
    "WalletTransaction",
    "WalletWithdrawal",
]
