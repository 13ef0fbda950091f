from intake.normalizers.data_cleaner import DataCleaner
from intake.normalizers.date_parser import DateParser
from intake.normalizers.phone import normalize_phone
from intake.normalizers.classifiers import Classifiers, KeywordClassifier, classify_gender

__all__ = [
    "Classifiers",
    "DataCleaner",
    "DateParser",
    "KeywordClassifier",
    "classify_gender",
    "normalize_phone",
]
