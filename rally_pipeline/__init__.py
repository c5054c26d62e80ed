"""
Exported volleyball scouting JSON -> per-player, per-match skill statistics.

  raw JSON
    -> key bag (export envelope unwrapped)
    -> db root
    -> event-like records (bounded breadth-first search)
    -> summary tallies / canonical RallyEvent + Match
    -> PlayerMatchStat per match for one player (or the unassigned events)
"""
