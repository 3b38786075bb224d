from app.game.tournaments.registration import (
    cancel_registration,
    quote_registration_fee,
    register_player,
    register_squad,
)
from app.game.tournaments.release import release_slot
from app.game.tournaments.settlement import declare_winners, settle_winner_entry

__all__ = [
    "cancel_registration",
    "declare_winners",
    "quote_registration_fee",
    "register_player",
    "register_squad",
    "release_slot",
    "settle_winner_entry",
]
