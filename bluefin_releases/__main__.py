from bluefin_releases.cli.main import main

if __name__ == "__main__":
    main()
