"""
Studies: Structured experiments for understanding.

Each study begins with observation, not hypothesis.

- rendezvous: two robots, one program, one marked cell
"""
