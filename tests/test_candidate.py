import sys
import os

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import condorcetlib.candidate
from condorcetlib.candidate import Candidate


def test_attributes():
    cand = Candidate('Nashville', 3)
    assert cand.name == 'Nashville'
    assert cand.key == 3
    assert str(cand) == 'Nashville'
    assert 'Nashville' in repr(cand)


@pytest.mark.parametrize('attr', ['name', 'key', '_name', 'other'])
def test_immutable(attr):
    cand = Candidate('A', 0)
    with pytest.raises(AttributeError):
        setattr(cand, attr, 'B')
    with pytest.raises(AttributeError):
        delattr(cand, attr)
    assert cand.name == 'A'


def test_identity_equality():
    cand1 = Candidate('A', 0)
    cand2 = Candidate('A', 0)
    assert cand1 == cand1
    assert cand1 != cand2
    assert len({cand1, cand2}) == 2


def test_names():
    cands = [Candidate(name, i) for i, name in enumerate('CAB')]
    assert condorcetlib.candidate.names(cands) == ['C', 'A', 'B']
