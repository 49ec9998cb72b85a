"""
Teacher recommendation engine.

Responsibilities:
- Accept a lesson slot request and snapshots of the roster, the student and
  their assignment history.
- Drop teachers failing hard constraints (NG list, capacity, capability,
  availability, pairing).
- Score and rank survivors on weighted soft preferences.
- Return structured, explainable candidates ready for API serialisation.
"""
