"""RepVault AI backend: usage governance for workout generation requests."""
