#!/usr/bin/python3

from vault_deployment.cli import initialize as cli

if __name__ == "__main__":
    cli()
