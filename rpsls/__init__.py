"""Stake-bearing Rock-Paper-Scissors-Lizard-Spock settled by commit-reveal."""
