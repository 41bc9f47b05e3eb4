"""fitplan - AI workout plan generation service.

Turns a validated plan request into a language-model prompt, repairs the
model's free-text answer into a structured plan and persists it as
goal -> plan -> workouts -> exercises rows.
"""
