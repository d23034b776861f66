from quizdeck.models import Deck, FlashcardItem
from quizdeck.weak_set import ReviewMode, clear, on_outcome, pool_for, wrong_count


def _deck(deck_id: str, *ids: str) -> Deck:
    cards = tuple(FlashcardItem(id=item_id, deck_id=deck_id, question="q", answer="a") for item_id in ids)
    return Deck(id=deck_id, title=deck_id, cards=cards)


def test_wrong_answer_marks_once() -> None:
    once = on_outcome(frozenset(), "d1", False)
    twice = on_outcome(once, "d1", False)
    assert once == frozenset({"d1"})
    assert twice == once


def test_correct_answer_clears_and_absent_is_noop() -> None:
    marked = frozenset({"d1", "d2"})
    assert on_outcome(marked, "d1", True) == frozenset({"d2"})
    assert on_outcome(marked, "d9", True) == marked


def test_pool_for_wrong_ignores_foreign_ids() -> None:
    deck = _deck("d", "d1", "d2", "d3")
    wrong = frozenset({"d1", "d4"})
    pool = pool_for(deck, ReviewMode.WRONG, wrong)
    assert [card.id for card in pool] == ["d1"]
    assert wrong == frozenset({"d1", "d4"})


def test_pool_for_all_returns_whole_deck() -> None:
    deck = _deck("d", "d1", "d2")
    assert pool_for(deck, ReviewMode.ALL, frozenset()) == deck.cards


def test_namespaced_ids_do_not_collide_across_decks() -> None:
    core = _deck("core", "core-1", "core-2")
    acronyms = _deck("acronyms", "acronym-1")
    wrong = frozenset({"core-1", "acronym-1"})
    assert [card.id for card in pool_for(core, ReviewMode.WRONG, wrong)] == ["core-1"]
    assert [card.id for card in pool_for(acronyms, ReviewMode.WRONG, wrong)] == ["acronym-1"]


def test_clear_only_touches_one_deck() -> None:
    core = _deck("core", "core-1", "core-2")
    wrong = frozenset({"core-1", "core-2", "acronym-1"})
    assert clear(wrong, core) == frozenset({"acronym-1"})


def test_wrong_count_per_deck() -> None:
    core = _deck("core", "core-1", "core-2", "core-3")
    assert wrong_count(core, frozenset({"core-1", "core-3", "acronym-1"})) == 2
    assert wrong_count(core, frozenset()) == 0
