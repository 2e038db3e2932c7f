"""Pure domain primitives: clock, task enums and DTOs."""
