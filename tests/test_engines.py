import random
import unittest
from datetime import datetime, timezone
from decimal import Decimal

from domain.blackjack import (
    BlackjackEngine,
    BlackjackResult,
    compare_hands,
    hand_value,
    new_deck,
)
from domain.engines import build_engines
from domain.errors import InvalidField
from domain.generic_game import GenericGameEngine
from domain.models import Bet, GameKind, GameSession, SessionState
from domain.money import to_cents
from domain.slot_machine import SlotMachineEngine, payout_multiplier, spin_reel

from memory_repositories import ScriptedRandom, StackedDeckRandom

CHERRY, LEMON, SEVEN = 0, 22, 70


def make_session(kind: GameKind, data=None) -> GameSession:
    return GameSession(
        id="a" * 32,
        owner_id="42",
        kind=kind,
        state=SessionState.IN_PROGRESS,
        created_at=datetime.now(timezone.utc),
        data=data or {},
    )


class SlotMachineTests(unittest.TestCase):
    def test_weighted_reels_cover_all_symbols(self):
        self.assertEqual(spin_reel(ScriptedRandom([0])), "CHERRY")
        self.assertEqual(spin_reel(ScriptedRandom([21])), "CHERRY")
        self.assertEqual(spin_reel(ScriptedRandom([22])), "LEMON")
        self.assertEqual(spin_reel(ScriptedRandom([71])), "SEVEN")

    def test_payout_table(self):
        self.assertEqual(payout_multiplier(["SEVEN"] * 3), Decimal("25"))
        self.assertEqual(payout_multiplier(["CHERRY"] * 3), Decimal("3"))
        self.assertEqual(payout_multiplier(["CHERRY", "LEMON", "CHERRY"]), Decimal("1.5"))
        self.assertEqual(payout_multiplier(["CHERRY", "LEMON", "SEVEN"]), Decimal("0"))

    def test_three_cherries_pays_net_two_stakes(self):
        engine = SlotMachineEngine(ScriptedRandom([CHERRY, CHERRY, CHERRY]))
        outcome = engine.play(make_session(GameKind.SLOT_MACHINE), Bet(Decimal("20")))
        self.assertEqual(outcome.payout_delta, Decimal("40"))
        self.assertTrue(outcome.finished)
        self.assertEqual(outcome.data["reels"], ["CHERRY"] * 3)

    def test_no_match_loses_stake(self):
        engine = SlotMachineEngine(ScriptedRandom([CHERRY, LEMON, SEVEN]))
        outcome = engine.play(make_session(GameKind.SLOT_MACHINE), Bet(Decimal("20")))
        self.assertEqual(outcome.payout_delta, Decimal("-20"))

    def test_pair_is_rounded_down_to_cents(self):
        engine = SlotMachineEngine(ScriptedRandom([SEVEN, SEVEN, LEMON]))
        outcome = engine.play(make_session(GameKind.SLOT_MACHINE), Bet(Decimal("0.05")))
        # 0.05 * 1.5 = 0.075 -> 0.07
        self.assertEqual(outcome.payout_delta, Decimal("0.02"))

    def test_pair_that_rounds_to_nothing_is_a_push(self):
        engine = SlotMachineEngine(ScriptedRandom([SEVEN, SEVEN, LEMON]))
        outcome = engine.play(make_session(GameKind.SLOT_MACHINE), Bet(Decimal("0.01")))
        self.assertEqual(outcome.payout_delta, Decimal("0"))
        self.assertIn("push", outcome.description)
        self.assertNotIn("x1.5", outcome.description)

    def test_losing_spin_shows_the_lost_stake(self):
        engine = SlotMachineEngine(ScriptedRandom([CHERRY, LEMON, SEVEN]))
        outcome = engine.play(make_session(GameKind.SLOT_MACHINE), Bet(Decimal("20")))
        self.assertIn("no win. (-20)", outcome.description)

    def test_same_seed_same_result(self):
        bet = Bet(Decimal("10"))
        first = SlotMachineEngine(random.Random(7)).play(make_session(GameKind.SLOT_MACHINE), bet)
        second = SlotMachineEngine(random.Random(7)).play(make_session(GameKind.SLOT_MACHINE), bet)
        self.assertEqual(first.data, second.data)
        self.assertEqual(first.payout_delta, second.payout_delta)

    def test_has_no_follow_up_actions(self):
        engine = SlotMachineEngine(random.Random(1))
        with self.assertRaises(InvalidField):
            engine.act(make_session(GameKind.SLOT_MACHINE), "hit")


class BlackjackTests(unittest.TestCase):
    def test_hand_value_counts_aces_softly(self):
        self.assertEqual(hand_value(["AS", "KD"]), 21)
        self.assertEqual(hand_value(["AS", "AH", "9D"]), 21)
        self.assertEqual(hand_value(["AS", "AH"]), 12)
        self.assertEqual(hand_value(["KS", "QD", "5H"]), 25)
        self.assertEqual(hand_value(["TS", "7C"]), 17)

    def test_compare_hands(self):
        self.assertEqual(compare_hands(["KS", "QD", "5H"], ["TS", "7C"]), BlackjackResult.PLAYER_BUST)
        self.assertEqual(compare_hands(["KS", "8D"], ["TS", "6C", "9D"]), BlackjackResult.DEALER_BUST)
        self.assertEqual(compare_hands(["KS", "9D"], ["TS", "7C"]), BlackjackResult.PLAYER_WIN)
        self.assertEqual(compare_hands(["KS", "7D"], ["TS", "9C"]), BlackjackResult.DEALER_WIN)
        self.assertEqual(compare_hands(["KS", "8D"], ["TS", "8C"]), BlackjackResult.PUSH)

    def test_deal_holds_stake_and_offers_hit_and_stand(self):
        engine = BlackjackEngine(StackedDeckRandom(["TS", "7C", "9H", "8D"]))
        outcome = engine.play(make_session(GameKind.BLACKJACK), Bet(Decimal("10")))
        self.assertFalse(outcome.finished)
        self.assertEqual(outcome.payout_delta, Decimal("-10"))
        self.assertEqual(outcome.actions, ["hit", "stand"])
        self.assertEqual(outcome.data["player"], ["TS", "9H"])
        self.assertEqual(outcome.data["dealer"], ["7C", "8D"])
        self.assertIn("??", outcome.description)

    def test_deal_is_without_replacement(self):
        engine = BlackjackEngine(random.Random(3))
        outcome = engine.play(make_session(GameKind.BLACKJACK), Bet(Decimal("10")))
        cards = outcome.data["deck"] + outcome.data["player"] + outcome.data["dealer"]
        self.assertEqual(len(outcome.data["deck"]), 48)
        self.assertEqual(sorted(cards), sorted(new_deck()))

    def test_stand_dealer_draws_to_seventeen_and_player_wins(self):
        engine = BlackjackEngine(StackedDeckRandom(["TS", "7C", "9H", "8D", "2S"]))
        dealt = engine.play(make_session(GameKind.BLACKJACK), Bet(Decimal("10")))
        outcome = engine.act(make_session(GameKind.BLACKJACK, dealt.data), "stand")
        self.assertTrue(outcome.finished)
        self.assertEqual(outcome.data["dealer"], ["7C", "8D", "2S"])
        self.assertEqual(outcome.data["result"], BlackjackResult.PLAYER_WIN.value)
        self.assertEqual(outcome.payout_delta, Decimal("20"))

    def test_stand_dealer_wins(self):
        engine = BlackjackEngine(StackedDeckRandom(["TS", "7C", "9H", "8D", "5S"]))
        dealt = engine.play(make_session(GameKind.BLACKJACK), Bet(Decimal("10")))
        outcome = engine.act(make_session(GameKind.BLACKJACK, dealt.data), "stand")
        self.assertEqual(outcome.data["result"], BlackjackResult.DEALER_WIN.value)
        self.assertEqual(outcome.payout_delta, Decimal("0"))

    def test_hit_until_bust(self):
        engine = BlackjackEngine(StackedDeckRandom(["TS", "7C", "6H", "8D", "KD"]))
        dealt = engine.play(make_session(GameKind.BLACKJACK), Bet(Decimal("10")))
        outcome = engine.act(make_session(GameKind.BLACKJACK, dealt.data), "hit")
        self.assertTrue(outcome.finished)
        self.assertEqual(outcome.data["result"], BlackjackResult.PLAYER_BUST.value)
        self.assertEqual(outcome.payout_delta, Decimal("0"))

    def test_hit_below_twenty_one_continues(self):
        engine = BlackjackEngine(StackedDeckRandom(["TS", "7C", "2H", "8D", "3D"]))
        dealt = engine.play(make_session(GameKind.BLACKJACK), Bet(Decimal("10")))
        outcome = engine.act(make_session(GameKind.BLACKJACK, dealt.data), "hit")
        self.assertFalse(outcome.finished)
        self.assertEqual(outcome.data["player"], ["TS", "2H", "3D"])
        self.assertEqual(len(outcome.data["deck"]), 47)

    def test_dealer_bust_push_on_stand(self):
        engine = BlackjackEngine(StackedDeckRandom(["TS", "6C", "8H", "TD", "KD"]))
        dealt = engine.play(make_session(GameKind.BLACKJACK), Bet(Decimal("10")))
        outcome = engine.act(make_session(GameKind.BLACKJACK, dealt.data), "stand")
        self.assertEqual(outcome.data["result"], BlackjackResult.DEALER_BUST.value)
        self.assertEqual(outcome.payout_delta, Decimal("20"))

    def test_player_natural_resolves_on_the_deal(self):
        engine = BlackjackEngine(StackedDeckRandom(["AS", "9C", "KH", "7D"]))
        outcome = engine.play(make_session(GameKind.BLACKJACK), Bet(Decimal("10")))
        self.assertTrue(outcome.finished)
        self.assertEqual(outcome.data["result"], BlackjackResult.PLAYER_WIN.value)
        self.assertEqual(outcome.payout_delta, Decimal("10"))

    def test_both_naturals_push(self):
        engine = BlackjackEngine(StackedDeckRandom(["AS", "AC", "KH", "QD"]))
        outcome = engine.play(make_session(GameKind.BLACKJACK), Bet(Decimal("10")))
        self.assertEqual(outcome.data["result"], BlackjackResult.PUSH.value)
        self.assertEqual(outcome.payout_delta, Decimal("0"))

    def test_unknown_action(self):
        engine = BlackjackEngine(StackedDeckRandom(["TS", "7C", "9H", "8D"]))
        dealt = engine.play(make_session(GameKind.BLACKJACK), Bet(Decimal("10")))
        with self.assertRaises(InvalidField):
            engine.act(make_session(GameKind.BLACKJACK, dealt.data), "double")


class GenericGameTests(unittest.TestCase):
    def test_start_then_finish(self):
        engine = GenericGameEngine()
        started = engine.play(make_session(GameKind.GENERIC), Bet(Decimal("5")))
        self.assertFalse(started.finished)
        self.assertEqual(started.payout_delta, Decimal("0"))
        self.assertEqual(started.actions, ["finish"])

        finished = engine.act(make_session(GameKind.GENERIC, started.data), "finish")
        self.assertTrue(finished.finished)
        self.assertEqual(finished.payout_delta, Decimal("0"))

    def test_build_engines_covers_every_kind(self):
        engines = build_engines(random.Random(0))
        self.assertEqual(set(engines), set(GameKind))


class MoneyTests(unittest.TestCase):
    def test_to_cents_rounds_down(self):
        self.assertEqual(to_cents(Decimal("0.075")), Decimal("0.07"))
        self.assertEqual(to_cents(Decimal("3")), Decimal("3.00"))
        self.assertEqual(to_cents(Decimal("0.019")), Decimal("0.01"))


if __name__ == "__main__":
    unittest.main()
