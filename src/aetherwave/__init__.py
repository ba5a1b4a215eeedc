"""AetherWave progression and ranking engine."""
