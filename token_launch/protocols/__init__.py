"""Protocol implementations (Uniswap V3)"""
