import pytest

from agents import NON_ANSWERS, is_non_answer


@pytest.mark.parametrize("text", ["idk", "  IDK  ", "I don't know", "Pass", "n/a", "", "   ", "Dunno"])
def test_non_answers_match_after_trim_and_lowercase(text):
    assert is_non_answer(text)


@pytest.mark.parametrize("text", ["idk really", "I don't know exactly, but maybe", "passing", "none of them"])
def test_partial_matches_are_real_answers(text):
    assert not is_non_answer(text)


def test_closed_set_size():
    assert len(NON_ANSWERS) == 14
