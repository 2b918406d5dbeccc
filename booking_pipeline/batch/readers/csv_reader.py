"""
CSV reader using Spark for batch ingestion.

Booking exports are read with every column as a string: type coercion is the
normalizer's job, and the raw layer must hold values exactly as received.
"""

from typing import Optional

from pyspark.sql import DataFrame, SparkSession
from pyspark.sql.types import StringType, StructField, StructType

from booking_pipeline.core.models import RAW_FIELDS


def raw_booking_schema(columns: tuple[str, ...] = RAW_FIELDS) -> StructType:
    """All-string schema for the booking export columns."""
    return StructType([StructField(name, StringType(), True) for name in columns])


class CSVReader:
    """
    Reads booking CSV exports with Spark, without type inference.
    """

    def __init__(self, spark: SparkSession):
        """
        Initialize CSV reader.

        Args:
            spark: Active Spark session
        """
        self.spark = spark

    def read(
        self,
        file_path: str,
        schema: Optional[StructType] = None,
        header: bool = True,
        delimiter: str = ",",
    ) -> DataFrame:
        """
        Read CSV file into Spark DataFrame.

        Args:
            file_path: Path to CSV file
            schema: Optional explicit schema; columns come from the header otherwise
            header: Whether CSV has header row
            delimiter: Field delimiter

        Returns:
            Spark DataFrame with string columns
        """
        reader = self.spark.read
        if schema:
            reader = reader.schema(schema)

        return (
            reader
            .option("header", str(header).lower())
            .option("delimiter", delimiter)
            .option("inferSchema", "false")
            .option("mode", "PERMISSIVE")
            # Keep leading/trailing spaces; trimming is a normalization step
            .option("ignoreLeadingWhiteSpace", "false")
            .option("ignoreTrailingWhiteSpace", "false")
            .csv(file_path)
        )
