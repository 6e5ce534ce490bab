from .fastapi_app import main

main()
