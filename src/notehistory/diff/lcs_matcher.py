"""Longest Common Subsequence over word tokens.

Uses the classic O(m*n) dynamic-programming table.  The result drives
the word-level diff: tokens in the LCS are ``unchanged``, everything
else on the old side is ``removed`` and on the new side ``added``.
"""

from __future__ import annotations

from collections.abc import Sequence


def lcs_tokens(old: Sequence[str], new: Sequence[str]) -> list[str]:
    """Return one longest common subsequence of *old* and *new*.

    When backtracking hits a tie between dropping a token from *old* and
    dropping one from *new*, the *new* side is shortened first.  This tie
    rule fixes which of several equally long subsequences is returned, so
    the output is stable for identical inputs.

    Parameters
    ----------
    old:
        Tokens of the previous text.
    new:
        Tokens of the current text.

    Returns
    -------
    list[str]
        The common tokens, in order.
    """
    m = len(old)
    n = len(new)

    if m == 0 or n == 0:
        return []

    # dp[i][j] is the LCS length of old[:i] and new[:j].
    dp: list[list[int]] = [[0] * (n + 1) for _ in range(m + 1)]

    for i in range(1, m + 1):
        for j in range(1, n + 1):
            if old[i - 1] == new[j - 1]:
                dp[i][j] = dp[i - 1][j - 1] + 1
            else:
                dp[i][j] = max(dp[i - 1][j], dp[i][j - 1])

    result: list[str] = []
    i, j = m, n
    while i > 0 and j > 0:
        if old[i - 1] == new[j - 1]:
            result.append(old[i - 1])
            i -= 1
            j -= 1
        elif dp[i - 1][j] > dp[i][j - 1]:
            i -= 1
        else:
            j -= 1

    result.reverse()
    return result
