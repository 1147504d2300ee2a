from pickup_match_manager.domain.match_record import DraftFormat
from pickup_match_manager.engine.draft_format import DEFAULT_FORMAT, FormatSelector
from pickup_match_manager.engine.duel import DuelResolver
from pickup_match_manager.engine.presenter import Prompt
from tests.fakes.presenter import FakePresenter, everyone, throws

CAPTAINS = ("cap-a", "cap-b")


def _selector(presenter: FakePresenter, timeout: float = 1) -> FormatSelector:
    return FormatSelector(presenter, None, DuelResolver(presenter, timeout=1), timeout=timeout)


async def test_agreement_skips_duel(presenter: FakePresenter) -> None:
    presenter.respond("draft-format", everyone("snake"))

    chosen = await _selector(presenter).select(CAPTAINS)

    assert chosen is DraftFormat.SNAKE
    assert presenter.prompts_for("duel") == []
    assert presenter.announced("Draft type chosen: **Snake Draft**")


async def test_disagreement_goes_to_duel_winner(presenter: FakePresenter) -> None:
    presenter.respond("draft-format", lambda p: [("cap-a", "snake"), ("cap-b", "straight")])
    presenter.respond("duel", throws("rock", "scissors", winner="cap-b"))

    chosen = await _selector(presenter).select(CAPTAINS)

    assert chosen is DraftFormat.STRAIGHT
    assert len(presenter.prompts_for("duel")) == 1
    assert presenter.announced("RPS winner <@cap-b>")


async def test_single_vote_then_timeout_uses_voter_if_they_win(presenter: FakePresenter) -> None:
    presenter.respond("draft-format", lambda p: [("cap-a", "snake")])
    presenter.respond("duel", throws("paper", "rock", winner="cap-a"))

    chosen = await _selector(presenter, timeout=0.02).select(CAPTAINS)

    assert chosen is DraftFormat.SNAKE
    assert presenter.announced("Draft-type vote timed out")


async def test_duel_winner_without_vote_gets_default(presenter: FakePresenter) -> None:
    presenter.respond("draft-format", lambda p: [("cap-a", "snake")])
    presenter.respond("duel", throws("paper", "rock", winner="cap-b"))

    chosen = await _selector(presenter, timeout=0.02).select(CAPTAINS)

    assert chosen is DEFAULT_FORMAT


async def test_only_captains_may_vote(presenter: FakePresenter) -> None:
    def respond(prompt: Prompt) -> list[tuple[str, str]]:
        return [("someone-else", "snake"), ("cap-a", "snake"), ("cap-b", "snake")]

    presenter.respond("draft-format", respond)
    await _selector(presenter).select(CAPTAINS)

    outsider = next(result for voter, _, result in presenter.results if voter == "someone-else")
    assert not outsider.accepted
