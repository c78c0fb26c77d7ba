"""
refinepic Test Suite

Tests organized by:
- test_particles.py: Particle tile storage
- test_pusher.py: Explicit and Crank-Nicolson position updates
- test_position.py / test_bounds.py / test_plasma.py: Injection
- test_buffer_flags.py / test_partition.py / test_reorder.py: Buffer partition
"""
