"""
s3update — push a local directory tree to an S3 bucket, uploading only
files whose content digest differs from the one stored with the object.
"""
__version__ = "1.0.0"
