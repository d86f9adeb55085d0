"""
Study: Rendezvous on a Line

Two robots running the same program.

Questions to explore:
- Do they always meet, wherever they start?
- How does the meeting point depend on the marked cell?
- What changes when robot 1 starts to the right of robot 2?
- What happens when they start on the same cell?

Scenarios:
- default: The classic demo, robots at -5 and 5
- converging: Robots at -2 and 2
- coincident: Both robots on the marked cell
- far_apart: A long walk before the meeting
"""
