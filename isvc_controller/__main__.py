"""Entry point for running isvc-controller as a module."""

from isvc_controller.tool.isvc_controller import main

if __name__ == "__main__":
    main()
