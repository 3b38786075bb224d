from app.db.repo.coupons_repo import CouponsRepo
from app.db.repo.payment_refunds_repo import PaymentRefundsRepo
from app.db.repo.payments_repo import PaymentsRepo
from app.db.repo.reconciliation_runs_repo import ReconciliationRunsRepo
from app.db.repo.tournament_participants_repo import TournamentParticipantsRepo
from app.db.repo.tournament_roster_game_ids_repo import TournamentRosterGameIdsRepo
from app.db.repo.tournament_teams_repo import TournamentTeamsRepo
from app.db.repo.tournament_winners_repo import TournamentWinnersRepo
from app.db.repo.tournaments_repo import TournamentsRepo
from app.db.repo.users_repo import UsersRepo
from app.db.repo.wallet_transactions_repo import WalletTransactionsRepo
from app.db.repo.wallet_withdrawals_repo import WalletWithdrawalsRepo
from app.db.repo.wallets_repo import WalletsRepo

__all__ = [
    "CouponsRepo",
    "PaymentRefundsRepo",
    "PaymentsRepo",
    "ReconciliationRunsRepo",
    "TournamentParticipantsRepo",
    "TournamentRosterGameIdsRepo",
    "TournamentTeamsRepo",
    "TournamentWinnersRepo",
    "TournamentsRepo",
    "UsersRepo",
    "WalletTransactionsRepo",
    "WalletWithdrawalsRepo",
    "WalletsRepo",
]
