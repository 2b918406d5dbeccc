"""
Generic file reader for booking exports (CSV, JSON) and the bridge from
Spark rows to raw store rows.
"""

from typing import Iterator

from pyspark.sql import DataFrame, SparkSession
from pyspark.sql.functions import col
from pyspark.sql.types import StringType, StructType

from booking_pipeline.core.errors import MalformedBatchError

from .csv_reader import CSVReader

SUPPORTED_FORMATS = ("csv", "json")


class FileReader:
    """
    Reads a booking export in any supported format.
    """

    def __init__(self, spark: SparkSession):
        self.spark = spark
        self.csv_reader = CSVReader(spark)

    def read(
        self,
        file_path: str,
        file_format: str = "csv",
        schema: StructType | None = None,
        **options,
    ) -> DataFrame:
        """
        Read file into Spark DataFrame with every column cast to string.

        Args:
            file_path: Path to file
            file_format: csv or json
            schema: Optional explicit schema
            **options: Format-specific options

        Returns:
            Spark DataFrame

        Raises:
            MalformedBatchError: If the format is unsupported
        """
        fmt = file_format.lower()
        if fmt == "csv":
            df = self.csv_reader.read(file_path, schema=schema, **options)
        elif fmt == "json":
            reader = self.spark.read.option("primitivesAsString", "true")
            if schema:
                reader = reader.schema(schema)
            df = reader.json(file_path)
        else:
            raise MalformedBatchError(f"Unsupported file format: {file_format}")

        return df.select([col(c).cast(StringType()).alias(c) for c in df.columns])


def rows_from_dataframe(df: DataFrame) -> Iterator[dict]:
    """
    Yield DataFrame rows as plain dictionaries, in file order.

    Raises:
        MalformedBatchError: If the DataFrame has no booking_id column
    """
    if "booking_id" not in df.columns:
        raise MalformedBatchError(
            f"Batch has no booking_id column (columns: {', '.join(df.columns) or 'none'})"
        )
    for row in df.toLocalIterator():
        yield row.asDict()
