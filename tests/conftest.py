import pytest

from allerguard import AllergenLexicon, SubstitutionMap, UserAllergenProfile


@pytest.fixture(scope="session")
def lexicon():
    return AllergenLexicon.default()


@pytest.fixture(scope="session")
def substitution_map():
    return SubstitutionMap.default()


@pytest.fixture
def profile():
    def _build(**sensitivities):
        return UserAllergenProfile(sensitivities=sensitivities)

    return _build
