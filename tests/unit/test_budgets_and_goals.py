"""Unit tests for budget standing and savings goal progress"""

from datetime import date
from financial_guru.domain.budgets import GREEN, RED, YELLOW, budget_status, status_sort_key
from financial_guru.domain.goals import goal_progress


def test_budget_status_yellow_at_eighty_percent():
    status = budget_status(500.0, 400.0, date(2024, 6, 10))

    assert status.percent_used == 80.0
    assert status.projected_month_end == 1200.0
    assert status.status == YELLOW


def test_budget_status_red_when_exceeded():
    status = budget_status(200.0, 250.0, date(2024, 6, 30))

    assert status.percent_used == 125.0
    assert status.status == RED


def test_budget_status_green_and_zero_limit():
    assert budget_status(1000.0, 100.0, date(2024, 2, 1)).status == GREEN
    assert budget_status(0.0, 100.0, date(2024, 2, 1)).percent_used == 0.0


def test_status_sort_key_puts_red_first():
    rows = [(GREEN, "Dining"), (RED, "Travel"), (YELLOW, "Groceries"), (RED, "Gas")]

    ordered = sorted(rows, key=lambda r: status_sort_key(*r))

    assert ordered == [(RED, "Gas"), (RED, "Travel"), (YELLOW, "Groceries"), (GREEN, "Dining")]


def test_goal_without_target_date_projects_at_500_a_month():
    progress = goal_progress(1000.0, 400.0, today=date(2024, 1, 15))

    assert progress.percent_complete == 40.0
    assert progress.months_remaining == 2
    assert progress.monthly_required == 0.0
    assert progress.projected_completion_date == date(2024, 3, 15)


def test_goal_with_target_date_requires_monthly_amount():
    progress = goal_progress(
        6000.0, 1000.0, target_date=date(2024, 11, 15), monthly_income=5000.0, today=date(2024, 1, 15)
    )

    assert progress.months_remaining == 10
    assert progress.monthly_required == 500.0
    assert progress.is_on_track is True
    assert progress.projected_completion_date == date(2024, 11, 15)


def test_goal_off_track_when_required_exceeds_a_fifth_of_income():
    progress = goal_progress(
        10000.0, 0.0, target_date=date(2024, 3, 15), monthly_income=5000.0, today=date(2024, 1, 15)
    )

    assert progress.monthly_required == 5000.0
    assert progress.is_on_track is False


def test_goal_required_rounds_up_to_the_cent():
    progress = goal_progress(100.0, 0.0, target_date=date(2024, 4, 15), today=date(2024, 1, 15))

    assert progress.months_remaining == 3
    assert progress.monthly_required == 33.34
    # no income on file
    assert progress.is_on_track is False


def test_goal_past_due_requires_nothing_monthly():
    progress = goal_progress(
        1000.0, 250.0, target_date=date(2023, 12, 1), monthly_income=4000.0, today=date(2024, 1, 15)
    )

    assert progress.months_remaining == 0
    assert progress.monthly_required == 0.0
    assert progress.is_on_track is True


def test_goal_never_on_track_without_income():
    progress = goal_progress(100000.0, 0.0, target_date=date(2025, 2, 15), today=date(2024, 1, 15))

    assert progress.months_remaining == 13
    assert progress.monthly_required == 7692.31
    assert progress.is_on_track is False


def test_completed_goal():
    progress = goal_progress(1000.0, 1200.0, today=date(2024, 1, 15))

    assert progress.percent_complete == 120.0
    assert progress.months_remaining == 0
    assert progress.projected_completion_date is None
