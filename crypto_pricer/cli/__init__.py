"""Command-line entry points. Use: crypto-pricer <command> or python -m crypto_pricer."""
