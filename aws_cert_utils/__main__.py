from aws_cert_utils.app import run

if __name__ == "__main__":
    run()
