TEST_DATABASE = "files_api_test"
TEST_COLLECTION = "files"
TEST_MONGODB_URI = f"mongodb://localhost/{TEST_DATABASE}"
