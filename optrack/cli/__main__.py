"""Entry point for the optrack CLI when run as python -m optrack.cli."""

if __name__ == "__main__":
    from optrack.cli.main import main

    main()
