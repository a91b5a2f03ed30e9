"""Pure lifecycle logic: day boundary, recurrence, rollover and task mutations."""
