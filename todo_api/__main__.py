from todo_api.main import main

main()
