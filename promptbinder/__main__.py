from .interactive import main

main()
