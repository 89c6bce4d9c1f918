"""HomeVoice: voice-driven control of simulated home devices."""
