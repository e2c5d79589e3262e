"""Package entry point for ``python -m gecko_builder``.

WHY: Users run the builder as ``python -m gecko_builder build`` when the
``gecko`` console script is not on their PATH.

HOW: Delegates to the CLI's main() function.
"""

if __name__ == "__main__":
    from gecko_builder.cli import main
    main()
