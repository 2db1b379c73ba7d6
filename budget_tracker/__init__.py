"""Personal budget tracker: income/expense records, totals, calendar and analytics."""
