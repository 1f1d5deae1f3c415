from resque_autoscaler.main import main

main()
