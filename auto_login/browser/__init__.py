# Browser Package
