"""Condorcetlib - a library for computing Condorcet election results.

Condorcetlib ranks the candidates of an election according to ranked votes
(ballots) under the Condorcet family of methods and some of their relatives.

An election computation consists of the following:

-   Registering the candidates and the votes ranking them in an
    :class:`election.Election`. Malformed votes and votes referring to unknown
    candidates are refused with :class:`vote.InputInconsistency`.
-   Tallying pairwise comparisons between the candidates. This is done once
    per change of the votes by the :mod:`pairwise` module and shared by all
    the methods.
-   Resolving the tally (or the votes themselves) into a ranking. This is the
    task of the resolution methods in the ``evaluate`` subpackage, which are
    looked up by name in the registry of the :mod:`system` module. Their
    results are cached until the votes change.

Methods with interchangeable parts (the measure of pairwise win strength,
the quota, the vote transfer) take them from the ``component`` subpackage.
"""
