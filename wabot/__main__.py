from wabot.main import main

main()
