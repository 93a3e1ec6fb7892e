# main.py

from PyQt5.QtWidgets import QApplication
from engine import GraphEngine
from mainwindow import MainWindow
import logging
import sys

def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = QApplication(sys.argv)
    window = MainWindow(GraphEngine())
    window.resize(1200, 900)
    window.show()
    sys.exit(app.exec_())


if __name__ == '__main__':
    main()
