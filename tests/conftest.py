import pytest
from pyspark.sql import SparkSession


@pytest.fixture(scope="session")
def spark():
    spark = (SparkSession.builder
             .appName("logrank-tests")
             .master("local[2]")
             .config("spark.ui.enabled", "false")
             .config("spark.default.parallelism", "4")
             .getOrCreate())
    yield spark
    spark.stop()


@pytest.fixture(scope="session")
def sc(spark):
    return spark.sparkContext
