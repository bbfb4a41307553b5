from agent_secrets.cli import main

if __name__ == "__main__":
    main()
