from nodeforge.pipeline import main

if __name__ == "__main__":
    main()
