"""Atomic unit splitting, disk selection and storage plans."""