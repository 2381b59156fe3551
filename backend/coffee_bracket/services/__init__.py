"""
Bracket and heat services.

The bracket core (round1_generator, heat_resolver, next_round_builder,
manual_override, score_aggregator, heat_segments, judge_completion) works on
plain dataclasses and never touches the database or the clock.
bracket_service and heat_runtime run that core against stored rows.
"""
